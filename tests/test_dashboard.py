"""
Tests for dashboard/app.py page wiring, read statically so Streamlit does not
need a running script context.
"""

import ast
import unittest
from pathlib import Path

DASHBOARD_DIR = Path(__file__).resolve().parent.parent / "dashboard"


def parse(path: Path) -> ast.Module:
    return ast.parse(path.read_text(encoding="utf-8"))


class TestDashboardPages(unittest.TestCase):

    def setUp(self):
        self.app = parse(DASHBOARD_DIR / "app.py")

    def imported_pages(self) -> list:
        return [
            alias.name
            for node in self.app.body
            if isinstance(node, ast.ImportFrom) and node.module == "pages"
            for alias in node.names
        ]

    def test_every_page_defines_render(self):
        pages = self.imported_pages()

        self.assertEqual(sorted(pages), ["analytics", "google_ads", "search_console"])
        for name in pages:
            module = parse(DASHBOARD_DIR / "pages" / f"{name}.py")
            functions = {node.name for node in module.body if isinstance(node, ast.FunctionDef)}
            self.assertIn("render", functions, name)

    def test_navigation_maps_to_render_functions(self):
        assignment = next(
            node for node in self.app.body
            if isinstance(node, ast.Assign) and any(getattr(t, "id", None) == "PAGES" for t in node.targets)
        )

        targets = [(value.value.id, value.attr) for value in assignment.value.values]

        self.assertEqual(len(targets), 3)
        self.assertTrue(all(attr == "render" for _, attr in targets))
        self.assertEqual({module for module, _ in targets}, set(self.imported_pages()))

    def test_no_import_path_rewriting(self):
        imported = {
            alias.name
            for node in ast.walk(self.app)
            if isinstance(node, ast.Import)
            for alias in node.names
        }

        self.assertNotIn("sys", imported)
        self.assertNotIn("importlib.util", imported)


if __name__ == "__main__":
    unittest.main()
