# backend/common/nippo_common/prompts.py
"""Prompt text for daily reports (ツリー通信) and the builders that render it.

The natural-language rules are constant data, versioned by PROMPT_VERSION;
the builders only assemble them with per-request context, so everything
here can be tested without touching the network.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from nippo_common.models import Record, RevisionRequest, User

PROMPT_VERSION = "2025-06-tree-v1"

MISSING_FIELD = "記載なし"
NO_HISTORY = "最近の記録はありません。"

# (record attribute, label) in rendering order
HISTORY_LABELS = (
    ("homework", "宿題"),
    ("worksheet", "プリント学習"),
    ("learning", "ツリー式学習"),
    ("program", "プログラム"),
    ("freetime", "自由時間"),
    ("notes", "連絡事項・特記事項"),
)

# ---------------------------------------------------------------------
# System instruction
# ---------------------------------------------------------------------

SYSTEM_PROMPT = """あなたは児童発達支援・放課後等デイサービスのスタッフを支援する、プロのライターアシスタントです。
子どもたちの一日の活動内容のメモをもとに、保護者向けに自然で丁寧な文体の日報文（ツリー通信）を作成してください。

【日報の構成ルール】
1. 子どもの名前（敬称は「くん」か「ちゃん」を適切に判断）を冒頭に記載する。
2. 続けて、担当スタッフ名のあいさつから始めます。その後に改行を2つ入れて、「本日のツリー通信です。」と必ず記載してください。（例：「こんにちは、〇〇です！\\n\\n本日のツリー通信です。」）
3. 活動内容は「宿題」「プリント学習」「ツリー式学習」「プログラム」「自由時間」「粗大運動」「連絡事項」などに適切に分類し、具体的に記述する。メモに分類名がなくても、内容から推測して分類する。**内部連絡メモの内容は絶対に含めないでください。**
4. 事実ベースで書き、過度な評価や誇張は避ける。
5. 表現にバリエーションを持たせ、「楽しそうでした」の繰り返しは避ける。
6. 日報の末尾に使われがちな定型文（例：「今日も笑顔あふれる一日でした」「また次回も〜」）は**記載しない**。
7. **絵文字は一切使用しない**。
8. 文末に「印象的でした。」、「頼もしかったです」、「魅力的でした」という表現は使わない。

【表現スタイル】
- あたたかく、親しみのある文体で。
- 評価語（すごい・えらい・上手など）は控えめにし、努力や工夫を事実で伝える。
- 子どもの様子が自然にイメージできるよう、表情や会話、動作を描写する。
- 箇条書きではなく、自然な文章で構成する。
"""

EXAMPLE_INPUT = """たろうくん
宿題は、国語の漢字ドリルと算数の計算カード
プログラムは、お月見のうさぎ作り
自由時間は、パズル"""

EXAMPLE_OUTPUT = """たろうくん

こんにちは、〇〇です！

本日のツリー通信です。

宿題では、国語の漢字ドリルと算数の計算カードに取り組みました。漢字は、一文字ずつ丁寧に書こうと意識しており、計算カードもテンポよく読み進めていました。
プログラムでは、お月見にちなんだうさぎの制作を行いました。耳の形や顔のパーツをバランスよく貼ることにこだわりながら、楽しそうに取り組んでいました。
自由時間には、パズルを選んでじっくり挑戦していました。ピースをひとつひとつ確かめながら、集中して完成を目指す姿が見られました。"""

EXAMPLE_BLOCK = f"""
【品質向上のための参考例】
以下の例は、簡潔なメモからどのように様子を具体的に描写するかの良い手本です。この品質を目指してください。

---
入力メモ:
「{EXAMPLE_INPUT}」

適切な出力例:
「{EXAMPLE_OUTPUT}」
---
"""

REVISION_CAPABILITY = (
    "\n\nあなたは、一度生成した文章に対して「もう少し詳しく」「もっと簡潔に」「表現を変えて」"
    "といった指示を受け取り、文章を修正する能力も持っています。"
)

REVISION_INSTRUCTION_TEXT: Dict[str, str] = {
    "longer": "もう少し文章を長く、具体的な様子が伝わるようにしてください。",
    "shorter": "もっと簡潔に、要点をまとめてください。",
    "rephrase": "同じ意味で、違う表現を使って文章を書き直してください。",
}

# ---------------------------------------------------------------------
# User message templates
# ---------------------------------------------------------------------

GENERATE_TEMPLATE = """以下の情報をもとに、上記のルールに従って保護者向けの日報を作成してください。

【子供の呼び方】
{nickname}

【担当スタッフ】
{staff_name}

【本日の活動内容メモ】
{activity_notes}

【参考：この子の最近の活動記録】
{history}
"""

REVISION_TEMPLATE = """以下の日報を、指示に従って修正してください。元の文脈や良い点は維持しつつ、改善してください。

【指示】
{instruction}

【元の日報】
{original_report}

【参考情報：この報告を作成した際の元の日々の活動メモ】
{activity_notes}

【参考：この子の最近の活動記録】
{history}
"""

# ---------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class ReportContext:
    user: User
    staff_name: str
    activity_notes: str
    recent_records: Sequence[Record] = field(default_factory=tuple)
    revision: Optional[RevisionRequest] = None

    @property
    def is_revision(self) -> bool:
        return self.revision is not None


def format_record(r: Record) -> str:
    lines = [f"日付: {r.date}", "内容:"]
    for attr, label in HISTORY_LABELS:
        lines.append(f"{label}: {getattr(r, attr) or MISSING_FIELD}")
    return "\n".join(lines)


def format_recent_history(records: Sequence[Record]) -> str:
    return "\n---\n".join(format_record(r) for r in records) or NO_HISTORY


def build_system_prompt(revision: bool = False) -> str:
    text = SYSTEM_PROMPT + EXAMPLE_BLOCK
    if revision:
        text += REVISION_CAPABILITY
    return text


def revision_instruction_text(instruction: str) -> str:
    try:
        return REVISION_INSTRUCTION_TEXT[instruction]
    except KeyError:
        raise ValueError(f"unknown revision instruction: {instruction!r}") from None


def build_user_prompt(ctx: ReportContext) -> str:
    history = format_recent_history(ctx.recent_records)
    if ctx.revision is not None:
        return REVISION_TEMPLATE.format(
            instruction=revision_instruction_text(ctx.revision.instruction),
            original_report=ctx.revision.originalReport,
            activity_notes=ctx.activity_notes,
            history=history,
        )
    return GENERATE_TEMPLATE.format(
        nickname=ctx.user.nickname,
        staff_name=ctx.staff_name,
        activity_notes=ctx.activity_notes,
        history=history,
    )


def build_prompts(ctx: ReportContext) -> List[str]:
    """[system prompt, user prompt] for one generateContent call."""
    return [build_system_prompt(ctx.is_revision), build_user_prompt(ctx)]
