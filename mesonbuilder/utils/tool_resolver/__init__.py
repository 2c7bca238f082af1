from .base_resolver import (
    CliVersionResolver,
    Tool,
    ToolInstance,
    ToolResolver,
    ToolResolvers,
    parse_version,
    sort_instances,
)
from .resolvers import (
    HomebrewExecutableResolver,
    InstallLocationResolver,
    PathToolResolver,
    PropertiesFileVersionResolver,
    PythonExecutableResolver,
    RelativeToolResolver,
    VisualStudioResolver,
    XcrunResolver,
    XcrunSdkResolver,
)
