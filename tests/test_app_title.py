"""Tests for the Streamlit page title wiring."""

import sys
import os
import ast

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config import APP_TITLE

MAIN_PATH = os.path.join(os.path.dirname(__file__), "..", "main.py")


def _streamlit_calls(tree, attr):
    return [
        node for node in ast.walk(tree)
        if isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and node.func.attr == attr
        and isinstance(node.func.value, ast.Name)
        and node.func.value.id == "st"
    ]


class TestAppTitle:
    def setup_method(self):
        with open(MAIN_PATH, encoding="utf-8") as f:
            self.tree = ast.parse(f.read())

    def test_title_names_the_app(self):
        assert APP_TITLE.startswith("SkySim")

    def test_page_title_uses_shared_title(self):
        (call,) = _streamlit_calls(self.tree, "set_page_config")
        page_title = next(kw.value for kw in call.keywords if kw.arg == "page_title")
        assert isinstance(page_title, ast.Name) and page_title.id == "APP_TITLE"

    def test_heading_uses_shared_title(self):
        (call,) = _streamlit_calls(self.tree, "title")
        assert isinstance(call.args[0], ast.Name) and call.args[0].id == "APP_TITLE"
