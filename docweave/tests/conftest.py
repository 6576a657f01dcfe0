"""Shared fixtures for docweave tests."""

import pytest

from docweave.config import ModulesConfig, WeaveConfig
from docweave.fs import MemoryFileSystem


WIDGET_SOURCE = (
    '"""Widget examples."""\n'
    "\n"
    "\n"
    "def demo():\n"
    "    # START-A\n"
    "    from core import Widget\n"
    "    widget = Widget()\n"
    "    widget.render()\n"
    "    # END-A\n"
)

GUIDE = (
    "# Guide\n"
    "\n"
    "<!--- TOC -->\n"
    "<!--- END -->\n"
    "\n"
    "## Installation\n"
    "\n"
    "Install it.\n"
    "\n"
    "## Usage\n"
    "\n"
    "<!--- INCLUDE ../lib/core/widget.py#A lang=python -->\n"
    "<!--- END -->\n"
    "\n"
    "### Rendering\n"
    "\n"
    "<!--- SAMPLE file=../examples/example_01.py -->\n"
    "```python\n"
    'print("hello")\n'
    "```\n"
    "<!--- END -->\n"
    "\n"
    "<!--- LINKS -->\n"
    "[Widget]: core/Widget\n"
    "<!--- END -->\n"
)

WOVEN_GUIDE = (
    "# Guide\n"
    "\n"
    "<!--- TOC -->\n"
    "* [Installation](#installation)\n"
    "* [Usage](#usage)\n"
    "  * [Rendering](#rendering)\n"
    "<!--- END -->\n"
    "\n"
    "## Installation\n"
    "\n"
    "Install it.\n"
    "\n"
    "## Usage\n"
    "\n"
    "<!--- INCLUDE ../lib/core/widget.py#A lang=python -->\n"
    "```python\n"
    "from core import Widget\n"
    "widget = Widget()\n"
    "widget.render()\n"
    "```\n"
    "<!--- END -->\n"
    "\n"
    "### Rendering\n"
    "\n"
    "<!--- SAMPLE file=../examples/example_01.py -->\n"
    "```python\n"
    'print("hello")\n'
    "```\n"
    "<!--- END -->\n"
    "\n"
    "<!--- LINKS -->\n"
    "[Widget]: https://docs.example/core/Widget\n"
    "<!--- END -->\n"
)

EXAMPLE_01 = (
    "# This file was automatically generated from docs/guide.md. Do not edit.\n"
    "\n"
    'print("hello")\n'
)


@pytest.fixture
def sample_project(tmp_path):
    """Create a project with one module and one woven guide."""
    core_dir = tmp_path / "lib" / "core"
    core_dir.mkdir(parents=True)
    (core_dir / "pyproject.toml").write_text("[project]\nname = 'core'\n")
    (core_dir / "widget.py").write_text(WIDGET_SOURCE)

    docs_dir = tmp_path / "docs"
    docs_dir.mkdir()
    (docs_dir / "guide.md").write_text(GUIDE)
    (docs_dir / "plain.md").write_text("# Plain\n\nNo directives here.\n")

    return tmp_path


@pytest.fixture
def sample_config(sample_project):
    """Config for the sample project, modules discovered under lib/."""
    return WeaveConfig(
        root_dir=str(sample_project),
        modules=ModulesConfig(roots=("lib",), site_root="https://docs.example"),
    )


@pytest.fixture
def memory_fs():
    """In-memory tree rooted at /repo mirroring the sample project."""
    return MemoryFileSystem({
        "/repo/lib/core/pyproject.toml": "[project]\nname = 'core'\n",
        "/repo/lib/core/widget.py": WIDGET_SOURCE,
        "/repo/docs/guide.md": GUIDE,
    })


@pytest.fixture
def memory_config():
    return WeaveConfig(
        root_dir="/repo",
        modules=ModulesConfig(roots=("lib",), site_root="https://docs.example"),
    )


@pytest.fixture
def guide():
    """The unwoven guide document."""
    return GUIDE


@pytest.fixture
def woven_guide():
    """The guide after one apply run."""
    return WOVEN_GUIDE


@pytest.fixture
def example_01():
    """The runnable file generated from the guide's SAMPLE region."""
    return EXAMPLE_01
