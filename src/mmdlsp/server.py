"""
mmdlsp Language Server.

Registers LSP capabilities and wires the Mermaid handlers and the per-document
diagnostics pipelines.
"""
from __future__ import annotations

import logging
import threading

from pygls.lsp.server import LanguageServer
from lsprotocol import types as lsp

from mmdlsp import __version__
from mmdlsp.config import Settings, SettingsResolver, client_values
from mmdlsp.document import MermaidDocument, open_document
from mmdlsp.formatter import format_text
from mmdlsp.handlers import (
    get_completions, get_diagnostics, get_formatting_edits, get_hover, get_semantic_tokens,
)
from mmdlsp.handlers.semantic_tokens import LEGEND
from mmdlsp.language import get_descriptor
from mmdlsp.pipeline import DiagnosticsPipeline, Marker, RenderStatus
from mmdlsp.validator import Validator, make_validator

logger = logging.getLogger(__name__)

RENDER_STATUS_NOTIFICATION = '$/mermaid/renderStatus'
CMD_LANGUAGE_CONFIGURATION = 'mermaid.languageConfiguration'
CMD_VALIDATE = 'mermaid.validate'
CMD_FORMAT = 'mermaid.format'


class MermaidLanguageServer(LanguageServer):
    """Language server holding the per-session document and pipeline state."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Per-URI document store (populated on open/change).
        self.docs: dict[str, MermaidDocument] = {}
        # One diagnostics pipeline per open document.
        self.pipelines: dict[str, DiagnosticsPipeline] = {}
        self.resolver = SettingsResolver()
        self.settings = Settings()
        self.validator: Validator = make_validator(self.settings)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _apply_log_level(raw: str | None) -> None:
    """Set the root logger level from a string like 'debug', 'warning', etc."""
    if not raw:
        return
    level = getattr(logging, raw.upper(), None)
    if isinstance(level, int):
        logging.getLogger().setLevel(level)


def _apply_settings(ls: MermaidLanguageServer) -> None:
    """Re-resolve settings and push them into every live pipeline."""
    ls.settings = ls.resolver.resolve()
    _apply_log_level(ls.settings.log_level)
    ls.validator = make_validator(ls.settings)
    for pipeline in ls.pipelines.values():
        pipeline.validator = ls.validator
        pipeline.delay = ls.settings.debounce
    logger.debug('settings: %s', ls.settings)


def _publisher(ls: MermaidLanguageServer, uri: str):
    def publish(markers: list[Marker]) -> None:
        logger.debug('publish: %s -> %d marker(s)', uri, len(markers))
        try:
            ls.text_document_publish_diagnostics(
                lsp.PublishDiagnosticsParams(uri=uri, diagnostics=get_diagnostics(markers))
            )
        except Exception:
            # Protocol not connected (e.g. during unit tests)
            logger.debug('publish: dropped for %s', uri, exc_info=True)
    return publish


def _reporter(ls: MermaidLanguageServer, uri: str):
    def report(status: RenderStatus, message: str | None) -> None:
        try:
            ls.protocol.notify(RENDER_STATUS_NOTIFICATION, {
                'uri': uri,
                'status': status.value,
                'message': message,
            })
        except Exception:
            logger.debug('report: dropped for %s', uri, exc_info=True)
    return report


def _pipeline_for(ls: MermaidLanguageServer, uri: str) -> DiagnosticsPipeline:
    pipeline = ls.pipelines.get(uri)
    if pipeline is None:
        pipeline = DiagnosticsPipeline(
            ls.validator,
            publish=_publisher(ls, uri),
            report=_reporter(ls, uri),
            delay=ls.settings.debounce,
        )
        ls.pipelines[uri] = pipeline
    return pipeline


def _root_from_params(params: lsp.InitializeParams) -> str | None:
    uri = params.root_uri
    if uri:
        # Strip the file:// scheme for local path use
        return uri[7:] if uri.startswith('file://') else uri
    return getattr(params, 'root_path', None)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def on_initialize(ls: MermaidLanguageServer, params: lsp.InitializeParams):
    ls.resolver = SettingsResolver(workspace_root=_root_from_params(params))
    opts = getattr(params, 'initialization_options', None)
    ls.resolver.set_client_values(client_values(opts))
    _apply_settings(ls)


def did_change_configuration(ls: MermaidLanguageServer, params: lsp.DidChangeConfigurationParams):
    """Handle live config changes (e.g. user changes ``mermaid.debounce``)."""
    settings = getattr(params, 'settings', None) or {}
    ls.resolver.update_client_values(client_values(settings))
    _apply_settings(ls)


# ---------------------------------------------------------------------------
# Text document synchronisation
# ---------------------------------------------------------------------------

def did_open(ls: MermaidLanguageServer, params: lsp.DidOpenTextDocumentParams):
    td = params.text_document
    ls.docs[td.uri] = open_document(td.uri, td.text, td.version)
    # Validate immediately on open (not debounced — nothing is being typed)
    _pipeline_for(ls, td.uri).validate_now(td.text)


def did_change(ls: MermaidLanguageServer, params: lsp.DidChangeTextDocumentParams):
    uri = params.text_document.uri
    source = params.content_changes[-1].text
    ls.docs[uri] = open_document(uri, source, params.text_document.version)
    # Debounce: wait for the user to pause typing before validating
    _pipeline_for(ls, uri).update(source)


def did_close(ls: MermaidLanguageServer, params: lsp.DidCloseTextDocumentParams):
    uri = params.text_document.uri
    pipeline = ls.pipelines.pop(uri, None)
    if pipeline is not None:
        pipeline.teardown()
    ls.docs.pop(uri, None)
    _publisher(ls, uri)([])


# ---------------------------------------------------------------------------
# Language features
# ---------------------------------------------------------------------------

def completion(ls: MermaidLanguageServer, params: lsp.CompletionParams) -> lsp.CompletionList | None:
    doc = ls.docs.get(params.text_document.uri)
    if doc is None:
        return None
    items = get_completions(doc, params.position)
    return lsp.CompletionList(is_incomplete=False, items=items)


def hover(ls: MermaidLanguageServer, params: lsp.HoverParams) -> lsp.Hover | None:
    doc = ls.docs.get(params.text_document.uri)
    if doc is None:
        return None
    return get_hover(doc, params.position)


def formatting(ls: MermaidLanguageServer, params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    doc = ls.docs.get(params.text_document.uri)
    if doc is None:
        return None
    return get_formatting_edits(doc, ls.settings.indent_width)


def semantic_tokens_full(ls: MermaidLanguageServer, params: lsp.SemanticTokensParams) -> lsp.SemanticTokens | None:
    doc = ls.docs.get(params.text_document.uri)
    if doc is None:
        return None
    return get_semantic_tokens(doc)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
# pygls unpacks ``workspace/executeCommand`` ``arguments`` as positional args.

def cmd_language_configuration(ls: MermaidLanguageServer, *args):
    """Return the language descriptor so the client can set up comments/brackets."""
    return get_descriptor().to_dict()


async def cmd_validate(ls: MermaidLanguageServer, uri: str = None):
    """Validate *uri* now and return its settled markers."""
    doc = ls.docs.get(uri) if uri else None
    if doc is None:
        return []
    markers = await _pipeline_for(ls, uri).flush(doc.source)
    return [m.to_dict() for m in markers]


def cmd_format(ls: MermaidLanguageServer, uri: str = None):
    """Return the formatted text of *uri* (without applying it)."""
    doc = ls.docs.get(uri) if uri else None
    if doc is None:
        return None
    return format_text(doc.source, ls.settings.indent_width)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

_register_lock = threading.Lock()


def register(ls: LanguageServer) -> bool:
    """Register every Mermaid feature on *ls* exactly once.

    Returns ``False`` (and does nothing) when *ls* already carries them.
    """
    with _register_lock:
        if lsp.TEXT_DOCUMENT_COMPLETION in ls.protocol.fm.features:
            return False
        ls.feature(lsp.INITIALIZE)(on_initialize)
        ls.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)(did_change_configuration)
        ls.feature(lsp.TEXT_DOCUMENT_DID_OPEN)(did_open)
        ls.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)(did_change)
        ls.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)(did_close)
        ls.feature(
            lsp.TEXT_DOCUMENT_COMPLETION,
            lsp.CompletionOptions(resolve_provider=False),
        )(completion)
        ls.feature(lsp.TEXT_DOCUMENT_HOVER)(hover)
        ls.feature(lsp.TEXT_DOCUMENT_FORMATTING)(formatting)
        ls.feature(lsp.TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, LEGEND)(semantic_tokens_full)
        ls.command(CMD_LANGUAGE_CONFIGURATION)(cmd_language_configuration)
        ls.command(CMD_VALIDATE)(cmd_validate)
        ls.command(CMD_FORMAT)(cmd_format)
        logger.debug('registered Mermaid features on %s', ls.name)
        return True


server = MermaidLanguageServer(
    'mmdlsp', __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
register(server)
