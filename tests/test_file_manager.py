import os
import tempfile
import unittest
from mesonbuilder.utils.file_manager import collect_project_files, matches_any

class TestMatchesAny(unittest.TestCase):

    def test_double_star(self):
        self.assertTrue(matches_any("a/b/c.md", ["**/*.md"]))
        self.assertTrue(matches_any("c.md", ["**/*.md"]))
        self.assertTrue(matches_any("zlib/src/x.c", ["zlib/**"]))

    def test_single_star_stays_in_segment(self):
        self.assertTrue(matches_any("build.log", ["*.log"]))
        self.assertFalse(matches_any("logs/build.log", ["*.log"]))

    def test_no_patterns(self):
        self.assertFalse(matches_any("anything", []))

class TestCollectProjectFiles(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = self.tmp.name
        for relative_path in ("meson.build", "src/add.c", "src/add.h", "docs/readme.txt",
                              "subprojects/dep.wrap", "subprojects/dep/meson.build"):
            path = os.path.join(self.root, relative_path)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            open(path, "w").close()

    def tearDown(self):
        self.tmp.cleanup()

    def _relative(self, paths):
        return [os.path.relpath(p, self.root).replace(os.sep, "/") for p in paths]

    def test_defaults_skip_subprojects(self):
        files = collect_project_files(self.root)
        self.assertEqual(self._relative(files), ["docs/readme.txt", "meson.build", "src/add.c", "src/add.h"])
        self.assertTrue(all(os.path.isabs(p) for p in files))

    def test_exclude_and_include_subprojects(self):
        files = collect_project_files(self.root, exclude=["docs/**", "**/*.h"], subprojects=["*.wrap"])
        self.assertEqual(self._relative(files), ["meson.build", "src/add.c", "subprojects/dep.wrap"])

if __name__ == "__main__":
    unittest.main()
