"""
Reserved GTD workflow categories and localized strings.

The four workflow headings are shared by the parser (display names) and the
mutation engine (where new tasks land, which headings may be recreated on
demand). Keep every reference to them going through this table.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

DEFAULT_LANG = "en"
SUPPORTED_LANGS = ("en", "zh")


@dataclass(frozen=True)
class WorkflowCategory:
    """One reserved workflow heading."""

    key: str
    icon: str
    labels: Dict[str, str]
    # Lower-case English keywords and Chinese keywords matched as substrings
    keywords: Tuple[str, ...]

    def label(self, lang: str) -> str:
        return self.labels.get(lang, self.labels[DEFAULT_LANG])

    def heading_text(self, lang: str) -> str:
        """Heading text as written by the default template, e.g. ``📥 Inbox``."""
        return f"{self.icon} {self.label(lang)}"

    def matches(self, name: str) -> bool:
        lowered = name.lower()
        return any(keyword in lowered for keyword in self.keywords)


WORKFLOW_CATEGORIES: Tuple[WorkflowCategory, ...] = (
    WorkflowCategory(
        key="inbox",
        icon="📥",
        labels={"en": "Inbox", "zh": "收件箱"},
        keywords=("inbox", "收件箱"),
    ),
    WorkflowCategory(
        key="next_actions",
        icon="⚡",
        labels={"en": "Next Actions", "zh": "下一步行动"},
        keywords=("next action", "下一步"),
    ),
    WorkflowCategory(
        key="waiting_for",
        icon="⏳",
        labels={"en": "Waiting For", "zh": "等待确认"},
        keywords=("waiting", "等待"),
    ),
    WorkflowCategory(
        key="someday_maybe",
        icon="☕",
        labels={"en": "Someday/Maybe", "zh": "将来/也许"},
        keywords=("someday", "maybe", "将来", "未来也许"),
    ),
)

WORKFLOW_BY_KEY: Dict[str, WorkflowCategory] = {c.key: c for c in WORKFLOW_CATEGORIES}

STRINGS: Dict[str, Dict[str, str]] = {
    "en": {
        "uncategorized": "Uncategorized",
        "new_project": "New Project",
        "sample_task": "Sample task (delete it or start adding your own)",
    },
    "zh": {
        "uncategorized": "未分类",
        "new_project": "新建项目",
        "sample_task": "示例任务（可删除或开始添加）",
    },
}


def normalize_lang(lang: Optional[str]) -> str:
    return lang if lang in SUPPORTED_LANGS else DEFAULT_LANG


def translate(key: str, lang: str) -> str:
    return STRINGS[normalize_lang(lang)][key]


def match_category(name: str) -> Optional[WorkflowCategory]:
    """Return the workflow category a heading name refers to, if any."""
    for category in WORKFLOW_CATEGORIES:
        if category.matches(name):
            return category
    return None


def localized_name(name: str, lang: str) -> str:
    """Display name for a heading: workflow headings are localized, others kept."""
    category = match_category(name)
    if category is None:
        return name
    return category.label(normalize_lang(lang))


def is_inbox_heading(name: str) -> bool:
    return WORKFLOW_BY_KEY["inbox"].matches(name)


def workflow_paths() -> List[str]:
    """Heading paths of the reserved workflow sections, in every language."""
    return [
        category.heading_text(lang)
        for lang in SUPPORTED_LANGS
        for category in WORKFLOW_CATEGORIES
    ]


def default_template(lang: str = DEFAULT_LANG) -> str:
    """Document used when storage has nothing yet."""
    lang = normalize_lang(lang)
    inbox, *rest = WORKFLOW_CATEGORIES
    lines = [f"# {inbox.heading_text(lang)}", f"- [ ] {translate('sample_task', lang)}", ""]
    for category in rest:
        lines.extend([f"# {category.heading_text(lang)}", "", ""])
    return "\n".join(lines[:-1])
