"""Table adapter — parse table requests and render them as styled HTML."""

from __future__ import annotations

import html
import logging
import re

from meligy.models import MindMapNode, TableRequest, TableResponse

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = ["Item", "Description", "Value"]
DEFAULT_TOPIC = "Information Table"

TABLE_KEYWORDS = [
    # English
    "create a table", "make a table", "generate a table", "design a table",
    "table for", "organize in table", "tabular format", "create chart",
    # Arabic
    "أنشئ جدول", "اعمل جدول", "صمم جدول", "جدول لـ",
    # Spanish
    "crear una tabla", "hacer una tabla", "generar una tabla", "diseñar una tabla",
    # French
    "créer un tableau", "faire un tableau", "générer un tableau", "concevoir un tableau",
    # German
    "erstelle eine tabelle", "mache eine tabelle", "generiere eine tabelle",
    "entwerfe eine tabelle",
    # Russian, Chinese, Japanese, Korean
    "создать таблицу", "创建表格", "テーブルを作成", "테이블 만들기",
]

APPLIED_PRINCIPLES = [
    "Hierarchical Information Structure",
    "Categorical Data Grouping",
    "Visual Clarity & Organization",
    "Logical Flow & Connections",
    "Cognitive Load Optimization",
    "Memory-Friendly Design",
]

_TOPIC_PATTERNS = [
    re.compile(r"table (?:for|about|of) ([^,.\n]+)", re.I),
    re.compile(r"create.*table.*for ([^,.\n]+)", re.I),
    re.compile(r"([^,.\n]+) table", re.I),
]
_COLUMN_PATTERNS = [
    re.compile(r"\bcolumns?\s*:\s*([^.\n]+)", re.I),
    re.compile(r"\bheaders?\s*:\s*([^.\n]+)", re.I),
    re.compile(r"with columns?\s+([^.\n]+)", re.I),
]
_ROW_PATTERNS = [
    re.compile(r"\brows?\s*:\s*([^.\n]+)", re.I),
    re.compile(r"\bdata\s*:\s*([^.\n]+)", re.I),
    re.compile(r"\bitems?\s*:\s*([^.\n]+)", re.I),
]
_STYLE_HINTS = [
    ("scientific", re.compile(r"scientific|research|academic", re.I)),
    ("business", re.compile(r"business|corporate|professional", re.I)),
    ("educational", re.compile(r"educational|learning|teaching", re.I)),
    ("comparison", re.compile(r"comparison|compare|versus", re.I)),
]
_LIST_SPLIT_RE = re.compile(r"[,;|]")
# Label sections end where the next label starts.
_NEXT_LABEL_RE = re.compile(r"\b(?:columns?|headers?|rows?|data|items?)\s*:", re.I)

_BASE_CLASSES: dict[str, str] = {
    "container": "bg-white/10 backdrop-blur-sm rounded-2xl p-4 border border-white/20 my-4",
    "header": "mb-4 text-center",
    "title": "text-xl font-bold text-white mb-2",
    "table_wrapper": "overflow-x-auto",
    "table": "w-full border-collapse",
    "thead": "bg-white/20",
    "header_row": "border-b-2 border-white/30",
    "th": "px-4 py-3 text-left font-semibold text-white border-r border-white/20 last:border-r-0",
    "tbody": "bg-white/5",
    "tr": "border-b border-white/10 hover:bg-white/10 transition-colors",
    "td": "px-4 py-3 text-white border-r border-white/10 last:border-r-0",
    "even_row": "bg-white/5",
    "odd_row": "bg-transparent",
    "footer": "mt-4 text-center",
    "footer_text": "text-xs text-gray-400",
}

_STYLE_ACCENTS = {
    "scientific": "blue",
    "business": "green",
    "educational": "purple",
    "comparison": "orange",
}


def style_classes(style: str) -> dict[str, str]:
    """CSS class bundle for a style preset. Unknown styles get the base bundle."""
    accent = _STYLE_ACCENTS.get(style)
    classes = dict(_BASE_CLASSES)
    if accent is None:
        return classes
    classes["container"] += f" border-{accent}-500/30"
    classes["title"] += f" text-{accent}-300"
    classes["th"] += f" bg-{accent}-500/20"
    return classes


# -- Request parsing -----------------------------------------------------------


def should_generate_table(text: str) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in TABLE_KEYWORDS)


def extract_topic(text: str) -> str:
    for pattern in _TOPIC_PATTERNS:
        match = pattern.search(text)
        if match:
            topic = _NEXT_LABEL_RE.split(match.group(1))[0].strip().rstrip(":").strip()
            if topic:
                return topic
    return DEFAULT_TOPIC


def _extract_list(text: str, patterns: list[re.Pattern[str]]) -> list[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            section = _NEXT_LABEL_RE.split(match.group(1))[0]
            return [item.strip() for item in _LIST_SPLIT_RE.split(section) if item.strip()]
    return []


def extract_columns(text: str) -> list[str]:
    return _extract_list(text, _COLUMN_PATTERNS)


def extract_rows(text: str) -> list[str]:
    return _extract_list(text, _ROW_PATTERNS)


def extract_style(text: str) -> str:
    for style, pattern in _STYLE_HINTS:
        if pattern.search(text):
            return style
    return "scientific"


def parse_table_request(text: str) -> TableRequest:
    """Turn a free-text table request into a TableRequest."""
    return TableRequest(
        topic=extract_topic(text),
        columns=extract_columns(text) or list(DEFAULT_COLUMNS),
        rows=extract_rows(text),
        style=extract_style(text),
    )


# -- Generation ----------------------------------------------------------------


class TableGenerator:
    """Renders TableRequests as HTML with a mind-map style explanation."""

    async def generate_table(self, request: TableRequest) -> TableResponse:
        try:
            tree = self.create_mind_map(request)
            categories = self.extract_categories(tree)
            logger.debug("Table %r categories: %s", request.topic, categories)
            return TableResponse(
                success=True,
                table_html=self.render_html(request),
                explanation=self.explanation(request),
                summary=self.summary(request),
                mind_map_principles=list(APPLIED_PRINCIPLES),
            )
        except Exception as exc:
            logger.exception("Table generation failed")
            return TableResponse(success=False, error=str(exc) or "Unknown error occurred")

    @staticmethod
    def create_mind_map(request: TableRequest) -> MindMapNode:
        """Build topic → column → cell tree."""
        root = MindMapNode(id="root", label=request.topic, level=0, category="main")
        data = request.data or []
        for col_index, column in enumerate(request.columns):
            column_node = MindMapNode(
                id=f"col_{col_index}", label=column, level=1, category="column"
            )
            for row_index in range(max(len(request.rows), len(data))):
                row = request.rows[row_index] if row_index < len(request.rows) else ""
                cell = row
                if row_index < len(data) and col_index < len(data[row_index]):
                    cell = data[row_index][col_index] or row
                column_node.children.append(
                    MindMapNode(
                        id=f"row_{row_index}_col_{col_index}",
                        label=cell,
                        level=2,
                        category="data",
                    )
                )
            root.children.append(column_node)
        return root

    @staticmethod
    def extract_categories(node: MindMapNode) -> list[str]:
        """Distinct categories in depth-first order."""
        seen: dict[str, None] = {}
        stack = [node]
        while stack:
            current = stack.pop()
            seen.setdefault(current.category, None)
            stack.extend(reversed(current.children))
        return list(seen)

    @staticmethod
    def render_html(request: TableRequest) -> str:
        c = style_classes(request.style)
        esc = html.escape
        parts = [
            f'<div class="{c["container"]}">',
            f'<div class="{c["header"]}"><h3 class="{c["title"]}">{esc(request.topic)}</h3></div>',
            f'<div class="{c["table_wrapper"]}">',
            f'<table class="{c["table"]}">',
            f'<thead class="{c["thead"]}"><tr class="{c["header_row"]}">',
        ]
        parts.extend(f'<th class="{c["th"]}">{esc(h)}</th>' for h in request.columns)
        parts.append(f'</tr></thead><tbody class="{c["tbody"]}">')

        def row_class(index: int) -> str:
            stripe = c["even_row"] if index % 2 == 0 else c["odd_row"]
            return f'{c["tr"]} {stripe}'

        if request.data:
            for index, row in enumerate(request.data):
                cells = "".join(f'<td class="{c["td"]}">{esc(cell)}</td>' for cell in row)
                parts.append(f'<tr class="{row_class(index)}">{cells}</tr>')
        else:
            span = len(request.columns)
            for index, row in enumerate(request.rows):
                parts.append(
                    f'<tr class="{row_class(index)}">'
                    f'<td class="{c["td"]}" colspan="{span}">{esc(row)}</td></tr>'
                )

        parts.extend([
            "</tbody></table></div>",
            f'<div class="{c["footer"]}"><p class="{c["footer_text"]}">'
            "Generated using mind mapping principles for optimal organization</p></div>",
            "</div>",
        ])
        return "\n".join(parts)

    @staticmethod
    def explanation(request: TableRequest) -> str:
        row_count = len(request.data) if request.data else len(request.rows)
        return f"""## Detailed Table Analysis & Mind Mapping Application

### 🧠 **Mind Mapping Principles Applied:**

**1. Hierarchical Organization**
- **Root Level**: "{request.topic}" serves as the central concept
- **Branch Level**: Columns represent main categories branching from the central topic
- **Leaf Level**: Individual data points form the detailed information nodes

**2. Categorization & Grouping**
- Information is systematically grouped by columns ({", ".join(request.columns)})
- Related data points are clustered together for cognitive efficiency

**3. Visual Structure & Clarity**
- Clean, organized layout reduces cognitive load
- Consistent spacing and alignment aid visual processing

**4. Logical Flow & Connections**
- Information flows from general (headers) to specific (data)
- Sequential organization follows natural reading patterns

### 📊 **Table Structure Analysis:**

**Headers**: {len(request.columns)} main categories
**Data Organization**: {row_count or "Dynamic"} information clusters
**Accessibility**: Structured for easy scanning and comprehension"""

    @staticmethod
    def summary(request: TableRequest) -> str:
        row_count = len(request.data) if request.data else len(request.rows)
        return f"""## 📋 **Table Summary**

**Topic**: {request.topic}
**Structure**: {len(request.columns)} columns × {row_count or "variable"} rows
**Organization**: Hierarchical mind map structure
**Style**: {request.style.capitalize()} presentation
**Principles**: Applied {len(APPLIED_PRINCIPLES)} core mind mapping principles"""
