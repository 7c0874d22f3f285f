"""
Canonical Mermaid keyword table.

Every recognised keyword lives in exactly one :class:`Entry`.  The tokenizer,
completion and hover providers, the formatter and the structural validator all
derive their views from :data:`TABLE`, so a keyword added here is highlighted,
offered, documented and indented consistently.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Snippet:
    label: str       # shown in the completion list, e.g. 'Flowchart (TD)'
    detail: str      # one-line description
    body: str        # LSP snippet text (``${1:placeholder}`` tab stops)


@dataclass(frozen=True)
class Entry:
    name: str
    doc: str | None = None
    operator: bool = False       # an edge glyph rather than an identifier
    diagram: bool = False        # declares a diagram kind (first line of a diagram)
    opens_block: bool = False    # formatter indents the following lines
    closes_block: bool = False   # formatter dedents this line
    snippets: tuple[Snippet, ...] = field(default_factory=tuple)


_FLOWCHART_BODY = (
    '    ${1:A}[Start] --> B{Decision}\n'
    '    B -->|Yes| C[OK]\n'
    '    B -->|No| D[Cancel]'
)

TABLE: tuple[Entry, ...] = (
    # -- diagram kinds -------------------------------------------------------
    Entry('graph', diagram=True, opens_block=True,
          doc='**Flowchart**\n\nDeclares a new graph. Directions: `TD` (Top-Down), `LR` (Left-Right), etc.',
          snippets=(
              Snippet('Flowchart (TD)', 'Top-Down Flowchart', 'graph TD\n' + _FLOWCHART_BODY),
              Snippet('Flowchart (LR)', 'Left-Right Flowchart', 'graph LR\n' + _FLOWCHART_BODY),
          )),
    Entry('flowchart', diagram=True, opens_block=True,
          doc='**Flowchart**\n\nDeclares a new flowchart (newer syntax).'),
    Entry('sequenceDiagram', diagram=True, opens_block=True,
          doc='**Sequence Diagram**\n\nAn interaction diagram that shows how processes '
              'operate with one another and in what order.',
          snippets=(Snippet(
              'Sequence Diagram', 'Interaction Diagram',
              'sequenceDiagram\n'
              '    participant ${1:Alice}\n'
              '    participant Bob\n'
              '    ${1:Alice}->>John: Hello John, how are you?\n'
              '    loop Healthcheck\n'
              '        John->>John: Fight against hypochondria\n'
              '    end\n'
              '    Note right of John: Rational thoughts <br/>prevail!\n'
              '    John-->>${1:Alice}: Great!\n'
              '    John->>Bob: How about you?\n'
              '    Bob-->>John: Jolly good!'),)),
    Entry('classDiagram', diagram=True, opens_block=True,
          doc="**Class Diagram**\n\nDescribes the structure of a system by showing the system's "
              'classes, their attributes, operations (or methods), and the relationships among objects.',
          snippets=(Snippet(
              'Class Diagram', 'OO Structure',
              'classDiagram\n'
              '    ${1:Animal} <|-- Duck\n'
              '    ${1:Animal} <|-- Fish\n'
              '    ${1:Animal} <|-- Zebra\n'
              '    class ${1:Animal}{\n'
              '        +int age\n'
              '        +String gender\n'
              '        +isMammal()\n'
              '        +mate()\n'
              '    }\n'
              '    class Duck{\n'
              '        +String beakColor\n'
              '        +swim()\n'
              '        +quack()\n'
              '    }'),)),
    Entry('stateDiagram', diagram=True, opens_block=True,
          doc='**State Diagram**\n\nDescribes the behavior of a system.'),
    Entry('stateDiagram-v2', diagram=True, opens_block=True,
          doc='**State Diagram**\n\nDescribes the behavior of a system (Version 2).',
          snippets=(Snippet(
              'State Diagram', 'State Machine',
              'stateDiagram-v2\n'
              '    [*] --> ${1:Still}\n'
              '    ${1:Still} --> [*]\n'
              '    ${1:Still} --> Moving\n'
              '    Moving --> ${1:Still}\n'
              '    Moving --> Crash\n'
              '    Crash --> [*]'),)),
    Entry('erDiagram', diagram=True, opens_block=True,
          doc='**Entity Relationship Diagram**\n\nDescribes the structure of a database.',
          snippets=(Snippet(
              'ER Diagram', 'Entity Relationship',
              'erDiagram\n'
              '    ${1:CUSTOMER} ||--o{ ORDER : places\n'
              '    ORDER ||--|{ LINE-ITEM : contains\n'
              '    ${1:CUSTOMER} }|..|{ DELIVERY-ADDRESS : uses'),)),
    Entry('gantt', diagram=True, opens_block=True,
          doc='**Gantt Chart**\n\nA type of bar chart that illustrates a project schedule.',
          snippets=(Snippet(
              'Gantt Chart', 'Project Schedule',
              'gantt\n'
              '    title ${1:A Gantt Diagram}\n'
              '    dateFormat  YYYY-MM-DD\n'
              '    section Section\n'
              '    A task           :a1, 2014-01-01, 30d\n'
              '    Another task     :after a1  , 20d\n'
              '    section Another\n'
              '    Task in sec      :2014-01-12  , 12d\n'
              '    another task      : 24d'),)),
    Entry('pie', diagram=True, opens_block=True,
          doc='**Pie Chart**\n\nCircular statistical graphic.',
          snippets=(Snippet(
              'Pie Chart', 'Circular Statistics',
              'pie title ${1:Pets adopted by volunteers}\n'
              '    "Dogs" : 386\n'
              '    "Cats" : 85\n'
              '    "Rats" : 15'),)),
    Entry('journey', diagram=True, opens_block=True,
          snippets=(Snippet(
              'User Journey', 'User Experience',
              'journey\n'
              '    title ${1:My working day}\n'
              '    section Go to work\n'
              '      Make tea: 5: Me\n'
              '      Go upstairs: 3: Me\n'
              '      Do work: 1: Me, Cat\n'
              '    section Go home\n'
              '      Go downstairs: 5: Me\n'
              '      Sit down: 5: Me'),)),
    Entry('gitGraph', diagram=True,
          snippets=(Snippet(
              'GitGraph', 'Git History',
              'gitGraph\n'
              '    commit\n'
              '    commit\n'
              '    branch ${1:develop}\n'
              '    checkout ${1:develop}\n'
              '    commit\n'
              '    commit\n'
              '    checkout main\n'
              '    merge ${1:develop}\n'
              '    commit'),)),
    Entry('mindmap', diagram=True, opens_block=True,
          snippets=(Snippet(
              'Mindmap', 'Brainstorming',
              'mindmap\n'
              '  root((${1:mindmap}))\n'
              '    Origins\n'
              '      Long history\n'
              '      ::icon(fa fa-book)\n'
              '      Popularisation\n'
              '        British popular psychology author Tony Buzan\n'
              '    Research\n'
              '      On effectiveness<br/>and features\n'
              '      On Automatic creation\n'
              '        Uses\n'
              '            Creative techniques\n'
              '            Strategic planning\n'
              '            Argument mapping'),)),
    Entry('timeline', diagram=True, opens_block=True),
    Entry('zenuml', diagram=True),
    Entry('sankey-beta', diagram=True),
    Entry('quadrantChart', diagram=True),
    Entry('xyChart', diagram=True),
    Entry('block-beta', diagram=True, opens_block=True),
    Entry('xychart-beta', diagram=True),
    Entry('classDiagram-v2', diagram=True),
    Entry('flowchart-elk', diagram=True),
    Entry('requirementDiagram', diagram=True),
    Entry('C4Context', diagram=True), Entry('C4Container', diagram=True),
    Entry('C4Component', diagram=True), Entry('C4Dynamic', diagram=True),
    Entry('C4Deployment', diagram=True),
    Entry('architecture-beta', diagram=True),
    Entry('packet-beta', diagram=True),
    Entry('kanban', diagram=True),

    # -- directions ----------------------------------------------------------
    Entry('TD'), Entry('DT'), Entry('TB'), Entry('BT'), Entry('RL'), Entry('LR'),

    # -- structure -----------------------------------------------------------
    Entry('subgraph', opens_block=True,
          doc='**Subgraph**\n\nPartition the graph into a subgraph.'),
    Entry('end', closes_block=True,
          doc='**End**\n\nCloses a block (like `subgraph`).'),
    Entry('class'),
    Entry('participant', doc='**Participant**\n\nDefine a participant in a sequence diagram.'),
    Entry('actor', doc='**Actor**\n\nDefine an actor in a sequence diagram.'),
    Entry('loop'), Entry('alt'), Entry('opt'), Entry('rect'),
    Entry('note', doc='**Note**\n\nAdd a note to the diagram.'),
    Entry('over'), Entry('right'), Entry('left'), Entry('of'), Entry('box'),
    Entry('title'), Entry('accTitle'), Entry('accDescr'), Entry('section'),
    Entry('click', doc='**Click**\n\nBind a click event to a node.'),
    Entry('callback'), Entry('linkStyle'),
    Entry('classDef', doc='**Class Definition**\n\nDefine a style class.'),
    Entry('style', doc='**Style**\n\nApply specific styles to a node.'),
    Entry('fill'), Entry('stroke'), Entry('stroke-width'), Entry('color'),

    # -- edge glyphs ---------------------------------------------------------
    Entry('-->', operator=True, doc='**Arrow**\n\nStandard link.'),
    Entry('---', operator=True, doc='**Link**\n\nOpen link.'),
)

_BY_NAME: dict[str, Entry] = {e.name: e for e in TABLE}

KEYWORDS: frozenset[str] = frozenset(e.name for e in TABLE if not e.operator)
# Completion order follows the table, not alphabetical order.
KEYWORD_LIST: tuple[str, ...] = tuple(e.name for e in TABLE if not e.operator)
DIAGRAM_KINDS: frozenset[str] = frozenset(e.name for e in TABLE if e.diagram)
BLOCK_OPENERS: tuple[str, ...] = tuple(e.name for e in TABLE if e.opens_block)
BLOCK_CLOSERS: tuple[str, ...] = tuple(e.name for e in TABLE if e.closes_block)
SNIPPETS: tuple[Snippet, ...] = tuple(s for e in TABLE for s in e.snippets)


def _prefix_re(names) -> re.Pattern[str]:
    # Longest first so 'stateDiagram-v2' is preferred over 'stateDiagram'.
    alternatives = sorted(names, key=len, reverse=True)
    return re.compile(r'^(?:' + '|'.join(re.escape(n) for n in alternatives) + r')\b')


OPENER_RE = _prefix_re(BLOCK_OPENERS)
CLOSER_RE = _prefix_re(BLOCK_CLOSERS)


def is_keyword(word: str) -> bool:
    return word in KEYWORDS


def doc_for(token: str) -> str | None:
    """Return the Markdown documentation for *token*, or ``None``."""
    entry = _BY_NAME.get(token)
    return entry.doc if entry is not None else None
