"""Tests for mmdlsp.formatter — keyword-driven reindentation."""
from __future__ import annotations

import pytest

from mmdlsp.formatter import format_text


class TestFormatText:
    def test_body_of_diagram_is_indented(self):
        assert format_text('graph TD\nA-->B\nend') == 'graph TD\n    A-->B\nend'

    def test_nested_subgraphs(self):
        source = 'flowchart LR\nsubgraph a\nsubgraph b\nx\nend\nend\ny'
        assert format_text(source) == (
            'flowchart LR\n'
            '    subgraph a\n'
            '        subgraph b\n'
            '            x\n'
            '        end\n'
            '    end\n'
            '    y'
        )

    def test_existing_indentation_is_discarded(self):
        assert format_text('graph TD\n          A --> B\n\tC') == 'graph TD\n    A --> B\n    C'

    def test_blank_lines_become_empty(self):
        assert format_text('graph TD\n   \nA') == 'graph TD\n\n    A'

    def test_trailing_newline_preserved(self):
        assert format_text('graph TD\nA\n') == 'graph TD\n    A\n'

    def test_closer_never_goes_below_zero(self):
        assert format_text('end\nend\nA') == 'end\nend\nA'

    def test_closer_must_be_whole_word(self):
        assert format_text('graph TD\nendpoint --> x') == 'graph TD\n    endpoint --> x'

    def test_opener_must_be_whole_word(self):
        assert format_text('graphical\nA') == 'graphical\nA'

    def test_non_opener_block_words_do_not_indent(self):
        # Only diagram declarations and subgraph open blocks.
        assert format_text('sequenceDiagram\nloop x\nA->>B: hi\nend') == (
            'sequenceDiagram\n    loop x\n    A->>B: hi\nend'
        )

    def test_custom_indent_width(self):
        assert format_text('graph TD\nsubgraph s\nA\nend', indent_width=2) == (
            'graph TD\n  subgraph s\n    A\n  end'
        )

    def test_empty_text(self):
        assert format_text('') == ''

    @pytest.mark.parametrize('source', [
        'graph TD\nA-->B\nend',
        'flowchart LR\n  subgraph a\nx\n end\n\n',
        'stateDiagram-v2\n[*] --> Still\n',
        'end\nend\n%% c',
    ])
    def test_idempotent(self, source):
        once = format_text(source)
        assert format_text(once) == once
