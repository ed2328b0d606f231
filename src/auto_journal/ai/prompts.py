"""Prompt templates for AI-assisted journal entry classification.

Prompts are versioned so stored AI classifications can be traced back to the
prompt that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass

# v1.0: Journal entry classification with industry hints
PROMPT_VERSION = "v1.0"


@dataclass
class JournalPrompt:
    """Prompt template for journal entry classification.

    Attributes:
        version: Prompt version.
        system_prompt: System message setting LLM behavior.
        user_template: Template for user message with placeholders.
    """

    version: str = PROMPT_VERSION

    system_prompt: str = """あなたは日本の税理士のアシスタントAIです。
取引情報から適切な仕訳を判定してください。

【出力形式】
以下のJSON形式のみで返してください：
{
    "category": "事業用" または "プライベート",
    "account_item": "勘定科目名（例: 燃料費、通信費、接待交際費等）",
    "account_item_code": "勘定科目コード（3桁の数字）",
    "tax_category": "課税仕入 10%" または "対象外",
    "notes": "摘要（取引先名と品目を含める）",
    "confidence": 0.0〜1.0の信頼度,
    "reasoning": "判断理由"
}

【判断基準】
1. 取引先名や品目から事業用かプライベートか判断
2. 業種に応じた一般的な勘定科目を選択
   - ドライバー: ガソリン→燃料費(501)、洗車→車両費(502)
   - ライバー: 配信機材→消耗品費(503)、通信料→通信費(504)
   - フリーランス: 事務用品→消耗品費(503)、ソフトウェア→通信費(504)
3. 消費税がある場合は「課税仕入 10%」、ない場合は「対象外」
4. 摘要は「取引先名 - 品目」の形式"""

    user_template: str = """以下の取引の仕訳を判定してください。

【取引情報】
- 取引日: {date}
- 取引先: {supplier}
- 金額: {amount}
- 消費税: {tax_amount}
- 品目: {items}
- 取引区分: {rule_type}
{industry_line}
JSONのみを返してください。"""

    def format_user_message(
        self,
        date: str | None,
        supplier: str | None,
        amount: int | None,
        tax_amount: int | None,
        items: list[str],
        rule_type: str,
        industry: str | None = None,
    ) -> str:
        """Format the user message with transaction details.

        Unknown values are spelled out as 不明 rather than zero.
        """
        return self.user_template.format(
            date=date or "不明",
            supplier=supplier or "不明",
            amount=f"{amount}円" if amount is not None else "不明",
            tax_amount=f"{tax_amount}円" if tax_amount is not None else "不明",
            items=", ".join(items) if items else "不明",
            rule_type="収入" if rule_type == "income" else "支出",
            industry_line=f"- 業種: {industry}\n" if industry else "",
        )
