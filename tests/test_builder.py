import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch
from packaging.version import Version
from mesonbuilder import native_toolchain as tc
from mesonbuilder.build_config import BuildConfig
from mesonbuilder.builder import MesonBuilder, RunMesonBuilder, builder_from_toml, parse_meson_target
from mesonbuilder.errors import ExternalProcessFailed, ToolNotFound, UnsupportedTarget, UnsupportedVersion
from mesonbuilder.output import BuildOutput
from mesonbuilder.target import OS, Architecture, BuildMode, IOSSdk, LinkMode, LinkModePreference, Target
from mesonbuilder.utils.tool_resolver import ToolInstance

def _compiler_resolver():
    resolver = MagicMock()
    resolver.resolve_compiler.return_value = ToolInstance(tc.clang, "/usr/bin/clang", Version("17.0.6"))
    resolver.resolve_linker.return_value = ToolInstance(tc.lld, "/usr/bin/ld.lld")
    resolver.resolve_archiver.return_value = ToolInstance(tc.llvm_ar, "/usr/bin/llvm-ar")
    resolver.resolve_strip.return_value = None
    return resolver

@patch('mesonbuilder.builder.logger')
@patch('mesonbuilder.cross_file.logger')
class TestRunMesonBuilder(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.out_dir = os.path.join(self.tmp.name, "out")
        self.meson = ToolInstance(tc.meson, "/usr/bin/meson", Version("1.4.0"))
        self.ninja = ToolInstance(tc.ninja, "/opt/ninja/bin/ninja", Version("1.11.1"))

    def tearDown(self):
        self.tmp.cleanup()

    def _config(self, target_os=OS.LINUX, architecture=Architecture.X64, **kwargs):
        return BuildConfig(
            package_name="add",
            package_root=self.tmp.name,
            output_directory=self.out_dir,
            target_os=target_os,
            target_architecture=architecture,
            **kwargs,
        )

    def _runner(self, config, meson=None, compiler_resolver=None, options=None):
        return RunMesonBuilder(
            config,
            self.tmp.name,
            "add:shared_library",
            LinkMode.DYNAMIC,
            options if options is not None else {"buildtype": "release", "default_library": "shared"},
            meson_instance=meson or self.meson,
            compiler_resolver=compiler_resolver or _compiler_resolver(),
            host=Target.LINUX_X64,
        )

    @patch('mesonbuilder.builder.run_checked')
    def test_unsupported_target_spawns_nothing(self, mock_run_checked, mock_cross_logger, mock_logger):
        for config in (
            self._config(OS.FUCHSIA, Architecture.X64),
            self._config(OS.IOS, Architecture.X64, target_ios_sdk=IOSSdk.IPHONE_OS),
            self._config(OS.ANDROID, Architecture.ARM64),
        ):
            resolver = _compiler_resolver()
            with self.assertRaises(UnsupportedTarget):
                self._runner(config, compiler_resolver=resolver).run()
            resolver.resolve_compiler.assert_not_called()
        self.assertEqual(mock_run_checked.call_count, 0)
        self.assertFalse(os.path.exists(self.out_dir))

    @patch('mesonbuilder.builder.run_checked')
    @patch('mesonbuilder.builder.load_required_tool')
    def test_old_meson_is_rejected(self, mock_load, mock_run_checked, mock_cross_logger, mock_logger):
        mock_load.return_value = self.ninja
        old_meson = ToolInstance(tc.meson, "/usr/bin/meson", Version("0.64.1"))
        with self.assertRaises(UnsupportedVersion) as cm:
            self._runner(self._config(), meson=old_meson).run()
        self.assertEqual(cm.exception.version, "0.64.1")
        self.assertIn("0.64.1", str(cm.exception))
        self.assertIn(">=1.0.0", cm.exception.allowed_range)
        mock_run_checked.assert_not_called()

    @patch('mesonbuilder.builder.run_checked')
    @patch('mesonbuilder.builder.load_required_tool')
    def test_meson_without_version_is_rejected(self, mock_load, mock_run_checked, mock_cross_logger, mock_logger):
        mock_load.return_value = self.ninja
        with self.assertRaises(UnsupportedVersion) as cm:
            self._runner(self._config(), meson=ToolInstance(tc.meson, "/usr/bin/meson")).run()
        self.assertEqual(cm.exception.version, "unknown")

    @patch('mesonbuilder.builder.run_checked')
    @patch('mesonbuilder.builder.load_required_tool')
    def test_first_failure_in_submission_order(self, mock_load, mock_run_checked, mock_cross_logger, mock_logger):
        mock_load.side_effect = ToolNotFound("Ninja")
        resolver = _compiler_resolver()
        resolver.resolve_compiler.side_effect = ToolNotFound("C compiler")
        with self.assertRaises(ToolNotFound) as cm:
            self._runner(self._config(), compiler_resolver=resolver).run()
        self.assertEqual(cm.exception.tool_name, "Ninja")
        # Every branch ran to completion.
        resolver.resolve_strip.assert_called_once()
        mock_run_checked.assert_not_called()

    @patch.dict(os.environ, {"PATH": "/usr/bin"})
    @patch('mesonbuilder.builder.run_checked', return_value="")
    @patch('mesonbuilder.builder.load_required_tool')
    def test_configure_then_compile(self, mock_load, mock_run_checked, mock_cross_logger, mock_logger):
        mock_load.return_value = self.ninja
        os.makedirs(self.out_dir)
        stale = os.path.join(self.out_dir, "stale.o")
        open(stale, "w").close()

        self._runner(self._config(), options={"buildtype": "debug", "b_lto": "true"}).run()

        self.assertFalse(os.path.exists(stale))
        cross_file_path = os.path.join(self.out_dir, "cross.ini")
        with open(cross_file_path) as f:
            cross_ini = f.read()
        self.assertTrue(cross_ini.startswith("[host_machine]\nsystem = 'linux'"))
        self.assertIn("c = '/usr/bin/clang'", cross_ini)
        self.assertIn("needs_exe_wrapper = false", cross_ini)
        self.assertNotIn("strip", cross_ini)

        self.assertEqual(mock_run_checked.call_count, 2)
        configure, compile_ = mock_run_checked.call_args_list
        self.assertEqual(configure.args, ("configure", [
            "/usr/bin/meson", "setup", "--backend", "ninja", "--cross", cross_file_path,
            "-Dbuildtype=debug", "-Db_lto=true", self.out_dir,
        ]))
        self.assertEqual(configure.kwargs["cwd"], self.tmp.name)
        self.assertEqual(compile_.args, ("compile", ["/usr/bin/meson", "compile", "-C", self.out_dir, "add:shared_library"]))
        self.assertEqual(compile_.kwargs["env"]["PATH"], "/opt/ninja/bin" + os.pathsep + "/usr/bin")
        self.assertEqual(configure.kwargs["env"]["PATH"], "/usr/bin")

    @patch('mesonbuilder.builder.load_required_tool')
    @patch('mesonbuilder.builder.run_checked')
    def test_configure_failure_stops_build(self, mock_run_checked, mock_load, mock_cross_logger, mock_logger):
        mock_load.return_value = self.ninja
        mock_run_checked.side_effect = ExternalProcessFailed("configure", ["meson", "setup"], 1, "", "ERROR: bad")
        with self.assertRaises(ExternalProcessFailed) as cm:
            self._runner(self._config()).run()
        self.assertEqual(cm.exception.phase, "configure")
        self.assertEqual(mock_run_checked.call_count, 1)

    @patch('mesonbuilder.builder.environment_from_batch_file', return_value={"Path": "C:\\VC\\bin", "INCLUDE": "C:\\VC\\include"})
    @patch('mesonbuilder.builder.run_checked', return_value="")
    @patch('mesonbuilder.builder.load_required_tool')
    def test_windows_uses_environment_script(self, mock_load, mock_run_checked, mock_env, mock_cross_logger, mock_logger):
        mock_load.return_value = self.ninja
        resolver = _compiler_resolver()
        resolver.toolchain_environment_script.return_value = "C:\\VS\\vcvarsall.bat"
        resolver.toolchain_environment_script_arguments.return_value = ["x64"]
        runner = self._runner(self._config(OS.WINDOWS, Architecture.X64), compiler_resolver=resolver)
        runner.host = Target.WINDOWS_X64
        runner.run()
        mock_env.assert_called_once_with("C:\\VS\\vcvarsall.bat", ["x64"])
        configure, compile_ = mock_run_checked.call_args_list
        self.assertEqual(configure.kwargs["env"]["INCLUDE"], "C:\\VC\\include")
        self.assertEqual(compile_.kwargs["env"]["Path"], "/opt/ninja/bin" + os.pathsep + "C:\\VC\\bin")
        self.assertNotIn("PATH", compile_.kwargs["env"])

class TestParseMesonTarget(unittest.TestCase):

    def test_parse(self):
        self.assertEqual(parse_meson_target("add"), (None, "add"))
        self.assertEqual(parse_meson_target("src/lib/add"), ("src/lib", "add"))

@patch('mesonbuilder.builder.RunMesonBuilder')
class TestMesonBuilder(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = self.tmp.name
        project = os.path.join(self.root, "native")
        for relative_path in ("meson.build", "src/add.c", "subprojects/zlib.wrap", "subprojects/zlib-1.3/meson.build",
                              "subprojects/packagecache/zlib.tar.gz", "notes.md"):
            path = os.path.join(project, relative_path)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            open(path, "w").close()
        self.project = project

    def tearDown(self):
        self.tmp.cleanup()

    def _config(self, **kwargs):
        values = dict(
            package_name="my_package",
            package_root=self.root,
            output_directory=os.path.join(self.root, "out"),
            target_os=OS.LINUX,
            target_architecture=Architecture.X64,
        )
        values.update(kwargs)
        return BuildConfig(**values)

    def test_dry_run(self, mock_runner):
        config = self._config(target_os=OS.MACOS, target_architecture=Architecture.ARM64, dry_run=True)
        output = MesonBuilder.library("add", "native", "add").run(config, BuildOutput())

        mock_runner.assert_not_called()
        self.assertEqual([(a.os, a.architecture) for a in output.assets],
                         [(OS.MACOS, Architecture.ARM64), (OS.MACOS, Architecture.X64)])
        for asset in output.assets:
            self.assertEqual(asset.id, "package:my_package/add")
            self.assertEqual(asset.file, os.path.join(self.root, "out", "libadd.dylib"))
            self.assertFalse(os.path.exists(asset.file))
        self.assertEqual(output.dependencies, [])
        self.assertFalse(os.path.exists(os.path.join(self.root, "out")))

    def test_library_build(self, mock_runner):
        builder = MesonBuilder.library(
            "add", "native", "src/lib/add",
            options={"b_lto": "true", "buildtype": "minsize"},
            subprojects=["zlib-1.3/**"],
            exclude_from_dependencies=["**/*.md"],
        )
        config = self._config(build_mode=BuildMode.DEBUG, link_mode_preference=LinkModePreference.PREFER_STATIC)
        output = builder.run(config, BuildOutput())

        args = mock_runner.call_args.args
        self.assertEqual(args[1], self.project)
        self.assertEqual(args[2], "src/lib/add:static_library")
        self.assertEqual(args[3], LinkMode.STATIC)
        self.assertEqual(list(args[4].items()),
                         [("buildtype", "minsize"), ("default_library", "static"), ("b_lto", "true")])
        mock_runner.return_value.run.assert_called_once_with()

        self.assertEqual(len(output.assets), 1)
        asset = output.assets[0]
        self.assertEqual(asset.link_mode, LinkMode.STATIC)
        self.assertEqual(asset.file, os.path.join(self.root, "out", "src", "lib", "libadd.a"))
        self.assertEqual(output.dependencies, sorted([
            os.path.join(self.project, "meson.build"),
            os.path.join(self.project, "src", "add.c"),
            os.path.join(self.project, "subprojects", "zlib-1.3", "meson.build"),
        ]))

    def test_explicit_link_mode_wins(self, mock_runner):
        builder = MesonBuilder.library("add", "native", "add", link_mode=LinkMode.DYNAMIC)
        config = self._config(link_mode_preference=LinkModePreference.STATIC)
        output = builder.run(config, BuildOutput())
        self.assertEqual(mock_runner.call_args.args[4]["default_library"], "shared")
        self.assertEqual(output.assets[0].file, os.path.join(self.root, "out", "libadd.so"))

    def test_executable(self, mock_runner):
        config = self._config(target_os=OS.WINDOWS, build_mode=BuildMode.RELEASE)
        output = MesonBuilder.executable("native", "tools/gen", asset_name="gen").run(config, BuildOutput())
        args = mock_runner.call_args.args
        self.assertEqual(args[2], "tools/gen:executable")
        self.assertEqual(args[4], {"buildtype": "release"})
        self.assertEqual(output.assets[0].file, os.path.join(self.root, "out", "tools", "gen.exe"))

    def test_executable_without_asset_name(self, mock_runner):
        output = MesonBuilder.executable("native", "gen").run(self._config(), BuildOutput())
        self.assertEqual(output.assets, [])
        self.assertTrue(output.dependencies)

class TestBuilderFromToml(unittest.TestCase):

    def test_library(self):
        builder = builder_from_toml({"meson": {
            "project": "native", "target": "src/add", "link_mode": "static",
            "options": {"b_lto": True, "warning_level": 3},
        }})
        self.assertEqual(builder.asset_name, "add")
        self.assertEqual(builder.link_mode, LinkMode.STATIC)
        self.assertEqual(builder.options, {"b_lto": "true", "warning_level": "3"})

    def test_executable(self):
        builder = builder_from_toml({"meson": {"target": "gen", "type": "executable"}})
        self.assertEqual(builder.project, ".")
        self.assertIsNone(builder.asset_name)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            builder_from_toml({})
        with self.assertRaises(ValueError):
            builder_from_toml({"meson": {"target": "x", "type": "plugin"}})

if __name__ == "__main__":
    unittest.main()
