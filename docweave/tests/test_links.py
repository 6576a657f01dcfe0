"""Tests for the link resolver."""

from pathlib import Path

from docweave.document import parse_document
from docweave.fs import MemoryFileSystem
from docweave.links import is_absolute_target, resolve_links, resolve_target
from docweave.markers import RegionKind, scan_document
from docweave.modules import Module, ModuleRegistry
from docweave.run_log import RunLog

CORE = Module(name="core", root=Path("/lib/core"), docs_url="https://docs.example/core")
BARE = Module(name="bare", root=Path("/lib/bare"))
REGISTRY = ModuleRegistry(modules=(CORE, BARE))


def _resolve(text, module=None):
    doc = parse_document("/repo/docs/api.md", text)
    region = next(r for r in scan_document(doc) if r.kind is RegionKind.LINK_ANCHOR)
    log = RunLog()
    return resolve_links(doc, region, REGISTRY, module, log), log


class TestResolveTarget:
    """Tests for resolve_target."""

    def test_module_path(self):
        assert resolve_target("core/Widget", REGISTRY) == ("https://docs.example/core/Widget", None)

    def test_nested_path(self):
        url, _ = resolve_target("core/widgets/Button.html", REGISTRY)
        assert url == "https://docs.example/core/widgets/Button.html"

    def test_unknown_module(self):
        url, reason = resolve_target("unknown/Thing", REGISTRY)
        assert url is None
        assert "unknown module 'unknown'" in reason

    def test_bare_target_uses_document_module(self):
        assert resolve_target("Widget", REGISTRY, CORE)[0] == "https://docs.example/core/Widget"

    def test_bare_target_without_module(self):
        url, reason = resolve_target("Widget", REGISTRY)
        assert url is None
        assert "no module" in reason

    def test_module_without_docs_url(self):
        url, reason = resolve_target("bare/Thing", REGISTRY)
        assert url is None
        assert "no documentation URL" in reason


    def test_target_must_exist_in_generated_docs(self):
        documented = Module(
            name="core",
            root=Path("/lib/core"),
            docs_url="https://docs.example/core",
            docs_dir=Path("/lib/core/build/docs"),
        )
        registry = ModuleRegistry(modules=(documented,))
        fs = MemoryFileSystem({
            "/lib/core/build/docs/Widget.md": "",
            "/lib/core/build/docs/widgets/index.md": "",
        })

        assert resolve_target("core/Widget", registry, fs=fs)[0] == "https://docs.example/core/Widget"
        assert resolve_target("core/widgets", registry, fs=fs)[0] == "https://docs.example/core/widgets"
        url, reason = resolve_target("core/Gadget", registry, fs=fs)
        assert url is None
        assert "not found in /lib/core/build/docs" in reason

    def test_generated_docs_lookup_needs_a_file_system(self):
        documented = Module(name="core", root=Path("/lib/core"), docs_url="https://d/core", docs_dir=Path("/x"))
        assert resolve_target("core/Gadget", ModuleRegistry(modules=(documented,)))[0] == "https://d/core/Gadget"


class TestResolveLinks:
    """Tests for resolve_links."""

    def test_rewrites_known_module(self):
        body, log = _resolve("<!--- LINKS -->\n[Widget]: core/Widget\n<!--- END -->\n")
        assert body == ["[Widget]: https://docs.example/core/Widget"]
        assert log.n_warnings == 0

    def test_unknown_target_warns_and_keeps_text(self):
        text = "intro\n<!--- LINKS -->\n[Thing]: unknown/Thing\n<!--- END -->\n"
        body, log = _resolve(text)
        assert body == ["[Thing]: unknown/Thing"]
        assert log.n_warnings == 1
        warning = log.warnings()[0]
        assert warning.path == "/repo/docs/api.md"
        assert warning.line == 3
        assert "unknown/Thing" in warning.message

    def test_keeps_title(self):
        body, _ = _resolve('<!--- LINKS -->\n[W]: core/Widget "The widget"\n<!--- END -->\n')
        assert body == ['[W]: https://docs.example/core/Widget "The widget"']

    def test_absolute_targets_unchanged(self):
        text = (
            "<!--- LINKS -->\n"
            "[W]: https://docs.example/core/Widget\n"
            "[A]: #anchor\n"
            "some prose\n"
            "<!--- END -->\n"
        )
        body, log = _resolve(text)
        assert body == ["[W]: https://docs.example/core/Widget", "[A]: #anchor", "some prose"]
        assert log.n_warnings == 0

    def test_resolution_is_idempotent(self):
        first, _ = _resolve("<!--- LINKS -->\n[Widget]: core/Widget\n<!--- END -->\n")
        second, _ = _resolve("<!--- LINKS -->\n" + first[0] + "\n<!--- END -->\n")
        assert first == second

    def test_is_absolute_target(self):
        assert is_absolute_target("mailto:a@b.c")
        assert is_absolute_target("/root/page")
        assert not is_absolute_target("core/Widget")
