"""Tests for mmdlsp.server — registration and handlers driven without a client."""
from __future__ import annotations

import asyncio

import pytest
from lsprotocol import types as lsp

URI = 'file:///tmp/test_server.mmd'

VALID = """\
graph TD
    A[Start] --> B{Decision}
"""

UNFORMATTED = """\
graph TD
A --> B
subgraph one
C --> D
end
"""


@pytest.fixture
def ls():
    """A fresh server whose outgoing notifications are captured."""
    from mmdlsp.server import MermaidLanguageServer
    server = MermaidLanguageServer('mmdlsp-test', 'v0')
    server.published = []
    server.notified = []
    server.text_document_publish_diagnostics = server.published.append
    server.protocol.notify = lambda method, params=None: server.notified.append((method, params))
    return server


def _open(ls, text, uri=URI):
    from mmdlsp.server import did_open
    did_open(ls, lsp.DidOpenTextDocumentParams(
        text_document=lsp.TextDocumentItem(uri=uri, language_id='mermaid', version=1, text=text),
    ))


def _change(ls, text, uri=URI, version=2):
    from mmdlsp.server import did_change
    did_change(ls, lsp.DidChangeTextDocumentParams(
        text_document=lsp.VersionedTextDocumentIdentifier(uri=uri, version=version),
        content_changes=[lsp.TextDocumentContentChangeWholeDocument(text=text)],
    ))


class TestServerModule:
    def test_server_importable(self):
        from mmdlsp.server import server
        assert server is not None

    def test_module_server_is_registered(self):
        from mmdlsp.server import server
        assert lsp.TEXT_DOCUMENT_HOVER in server.protocol.fm.features
        assert lsp.TEXT_DOCUMENT_FORMATTING in server.protocol.fm.features

    def test_register_is_idempotent(self):
        from mmdlsp.server import MermaidLanguageServer, register
        fresh = MermaidLanguageServer('mmdlsp-fresh', 'v0')
        assert register(fresh) is True
        assert register(fresh) is False

    def test_module_server_not_registered_twice(self):
        from mmdlsp.server import register, server
        assert register(server) is False


class TestInitialize:
    def test_initialization_options_and_project_file(self, ls, tmp_path):
        from mmdlsp.server import on_initialize
        (tmp_path / '.mmdlsp.toml').write_text('indent_width = 2\ndebounce = 0.3\n')
        on_initialize(ls, lsp.InitializeParams(
            capabilities=lsp.ClientCapabilities(),
            root_uri='file://' + str(tmp_path),
            initialization_options={'debounce': 0.1},
        ))
        assert ls.settings.debounce == 0.1
        assert ls.settings.indent_width == 2

    def test_did_change_configuration_updates_pipelines(self, ls):
        from mmdlsp.server import did_change_configuration, _pipeline_for
        pipeline = _pipeline_for(ls, URI)
        did_change_configuration(ls, lsp.DidChangeConfigurationParams(
            settings={'mermaid': {'debounce': 0.05}},
        ))
        assert ls.settings.debounce == 0.05
        assert pipeline.delay == 0.05


class TestDocumentSync:
    @pytest.mark.asyncio
    async def test_open_valid_document_publishes_empty_set(self, ls):
        _open(ls, VALID)
        await asyncio.sleep(0.05)
        assert ls.published
        last = ls.published[-1]
        assert last.uri == URI
        assert last.diagnostics == []
        assert ls.notified[-1] == (
            '$/mermaid/renderStatus', {'uri': URI, 'status': 'valid', 'message': None},
        )

    @pytest.mark.asyncio
    async def test_open_invalid_document_publishes_one_diagnostic(self, ls):
        _open(ls, 'graph TD\nsubgraph one\nA --> B\n')
        await asyncio.sleep(0.05)
        diags = ls.published[-1].diagnostics
        assert len(diags) == 1
        assert diags[0].range.start == lsp.Position(line=1, character=0)
        assert diags[0].source == 'mermaid'
        assert ls.notified[-1][1]['status'] == 'error'

    @pytest.mark.asyncio
    async def test_change_to_blank_clears_immediately(self, ls):
        _open(ls, 'nonsense\n')
        await asyncio.sleep(0.05)
        assert len(ls.published[-1].diagnostics) == 1
        _change(ls, '   \n')
        assert ls.published[-1].diagnostics == []
        assert ls.notified[-1][1]['status'] == 'empty'

    @pytest.mark.asyncio
    async def test_change_is_debounced(self, ls):
        from mmdlsp.config import Settings
        ls.settings = Settings(debounce=0.05)
        _open(ls, VALID)
        await asyncio.sleep(0.02)
        count = len(ls.published)
        _change(ls, 'graph TD\nA --> B\n', version=2)
        _change(ls, 'unknownDiagram\n', version=3)
        await asyncio.sleep(0.01)
        assert len(ls.published) == count
        await asyncio.sleep(0.15)
        assert len(ls.published) == count + 1
        assert len(ls.published[-1].diagnostics) == 1

    @pytest.mark.asyncio
    async def test_close_tears_down_and_clears(self, ls):
        from mmdlsp.server import did_close
        _open(ls, 'nonsense\n')
        await asyncio.sleep(0.05)
        pipeline = ls.pipelines[URI]
        did_close(ls, lsp.DidCloseTextDocumentParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
        ))
        assert pipeline.closed
        assert URI not in ls.docs
        assert URI not in ls.pipelines
        assert ls.published[-1].diagnostics == []


class TestFeatures:
    @pytest.mark.asyncio
    async def test_completion_and_hover(self, ls):
        from mmdlsp.server import completion, hover
        _open(ls, VALID)
        items = completion(ls, lsp.CompletionParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
            position=lsp.Position(line=0, character=3),
        )).items
        assert any(i.label == 'graph' for i in items)
        result = hover(ls, lsp.HoverParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
            position=lsp.Position(line=0, character=1),
        ))
        assert 'Flowchart' in result.contents.value

    def test_unknown_document_returns_none(self, ls):
        from mmdlsp.server import completion, formatting, hover, semantic_tokens_full
        ident = lsp.TextDocumentIdentifier(uri='file:///nope.mmd')
        pos = lsp.Position(line=0, character=0)
        assert completion(ls, lsp.CompletionParams(text_document=ident, position=pos)) is None
        assert hover(ls, lsp.HoverParams(text_document=ident, position=pos)) is None
        assert formatting(ls, lsp.DocumentFormattingParams(
            text_document=ident, options=lsp.FormattingOptions(tab_size=2, insert_spaces=True),
        )) is None
        assert semantic_tokens_full(ls, lsp.SemanticTokensParams(text_document=ident)) is None

    @pytest.mark.asyncio
    async def test_formatting_returns_full_document_edit(self, ls):
        from mmdlsp.server import formatting
        _open(ls, UNFORMATTED)
        edits = formatting(ls, lsp.DocumentFormattingParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
            options=lsp.FormattingOptions(tab_size=2, insert_spaces=True),
        ))
        assert len(edits) == 1
        assert edits[0].range.start == lsp.Position(line=0, character=0)
        assert edits[0].range.end == lsp.Position(line=5, character=0)
        assert edits[0].new_text == (
            'graph TD\n'
            '    A --> B\n'
            '    subgraph one\n'
            '        C --> D\n'
            '    end\n'
        )

    @pytest.mark.asyncio
    async def test_semantic_tokens(self, ls):
        from mmdlsp.server import semantic_tokens_full
        _open(ls, 'graph TD')
        tokens = semantic_tokens_full(ls, lsp.SemanticTokensParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
        ))
        assert tokens.data == [0, 0, 5, 0, 0, 0, 6, 2, 0, 0]


class TestCommands:
    def test_language_configuration(self, ls):
        from mmdlsp.server import cmd_language_configuration
        result = cmd_language_configuration(ls)
        assert result['id'] == 'mermaid'
        assert result['configuration']['comments'] == {'lineComment': '%%'}
        assert {'open': '"', 'close': '"'} in result['configuration']['autoClosingPairs']

    @pytest.mark.asyncio
    async def test_validate_returns_marker_dicts(self, ls):
        from mmdlsp.server import cmd_validate
        _open(ls, 'graph TD\nA --> B\nend\n')
        markers = await cmd_validate(ls, URI)
        assert len(markers) == 1
        assert markers[0]['startLine'] == 3
        assert markers[0]['startCol'] == 1

    @pytest.mark.asyncio
    async def test_validate_unknown_uri(self, ls):
        from mmdlsp.server import cmd_validate
        assert await cmd_validate(ls, 'file:///missing.mmd') == []

    @pytest.mark.asyncio
    async def test_format_command(self, ls):
        from mmdlsp.server import cmd_format
        _open(ls, UNFORMATTED)
        assert cmd_format(ls, URI).startswith('graph TD\n    A --> B\n')
        assert cmd_format(ls, None) is None


class TestFormattingSettings:
    @pytest.mark.asyncio
    async def test_configured_indent_width_wins_over_tab_size(self, ls):
        from mmdlsp.config import Settings
        from mmdlsp.server import formatting
        ls.settings = Settings(indent_width=2)
        _open(ls, 'graph TD\nA --> B')
        edits = formatting(ls, lsp.DocumentFormattingParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
            options=lsp.FormattingOptions(tab_size=8, insert_spaces=True),
        ))
        assert edits[0].new_text == 'graph TD\n  A --> B'

    def test_already_formatted_document_has_no_edits(self):
        from mmdlsp.document import open_document
        from mmdlsp.handlers.formatting import get_formatting_edits
        doc = open_document(URI, 'graph TD\n    A --> B\n')
        assert get_formatting_edits(doc, indent_width=4) == []
        assert len(get_formatting_edits(doc, indent_width=2)) == 1
