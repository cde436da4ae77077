"""
User-facing message templates.

The resolver and loader never hard-code presentation text. They render one
of these templates with str.format, so variants of the tool differ only in
the table they inject.
"""

from dataclasses import dataclass, fields
from typing import Union

from dice_menu.tables.table_types import FailureKind


@dataclass(frozen=True)
class MessageTable:
    """Templates keyed by FailureKind value, plus `not_loaded` and the judgement line."""
    name: str
    unknown_genre: str
    arity_mismatch: str
    out_of_range: str
    malformed_configuration: str
    configuration_load_failure: str
    configuration_integrity_failure: str
    missing_input: str
    not_a_number: str
    not_loaded: str

    # Judgement line shown above a judged menu
    judge_header: str
    judge_success: str
    judge_failure: str
    judge_menu: str

    def template(self, key: Union[FailureKind, str]) -> str:
        """Get the raw template for a failure kind or message key."""
        attr = key.value if isinstance(key, FailureKind) else key
        if attr == "name" or attr not in {f.name for f in fields(self)}:
            raise KeyError(f"No message template for: {attr}")
        return getattr(self, attr)

    def render(self, key: Union[FailureKind, str], **details) -> str:
        """
        Render a template with the given details.

        Placeholders with no matching detail are left as written rather
        than raising, so a sparse template table never breaks an error path.
        """
        return self.template(key).format_map(_KeepMissing(details))


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


DEFAULT_MESSAGES = MessageTable(
    name="default",
    unknown_genre="指定されたジャンル '{genre}' は存在しません。",
    arity_mismatch="{genre}では{expected}個のダイス目が必要です。",
    out_of_range="ははは、バカめ………このダイスは{dice_type}面体ダイスを使うんだよ……出直してきな……",
    malformed_configuration="……………おいおい、これぶっ壊れてねぇかぁ？対応してるメニューねぇぞ？",
    configuration_load_failure="おおっと……メニューデータが読み込めねぇな。ローカルサーバー環境になってない？あ、違う……？",
    configuration_integrity_failure="設定ファイルの項目数に誤りがあります。diceTypeと各リストの項目数を確認してください。",
    missing_input="＼ダイス目を{count}つ全て入力するんだねー！！ﾏﾛﾏﾛﾏﾛﾏﾛ……／",
    not_a_number=(
        "あ、ああ、あ、あ、あああのっ！！だ、だだ、ダイス目は……は、は、半角数字を……"
        "つ、つつ、つかって、ほしい……か、かな………あ、ああ、ご、ごめんね？"
    ),
    not_loaded="メニューデータがまだ読み込まれていません。",
    judge_header="成否判定: {judge}→{outcome}",
    judge_success="成功！",
    judge_failure="失敗…",
    judge_menu="メニュー: {menu}",
)

PLAIN_MESSAGES = MessageTable(
    name="plain",
    unknown_genre="Unknown genre '{genre}'.",
    arity_mismatch="{genre} needs {expected} dice values, got {actual}.",
    out_of_range="{value} is not a valid roll: this genre uses a d{dice_type} (1-{dice_type}).",
    malformed_configuration="The menu data has no entry for that roll. The configuration looks broken.",
    configuration_load_failure="The menu data could not be loaded.",
    configuration_integrity_failure="The menu data is inconsistent: check diceType against each list.",
    missing_input="Enter all {count} dice values.",
    not_a_number="Dice values must be whole numbers, got '{value}'.",
    not_loaded="The menu data has not been loaded yet.",
    judge_header="Judgement: {judge} -> {outcome}",
    judge_success="success",
    judge_failure="failure",
    judge_menu="Menu: {menu}",
)

_MESSAGE_TABLES = {table.name: table for table in (DEFAULT_MESSAGES, PLAIN_MESSAGES)}


def available_message_tables() -> list[str]:
    """Names accepted by get_message_table."""
    return list(_MESSAGE_TABLES.keys())


def get_message_table(name: str) -> MessageTable:
    """Get a shipped message table by name."""
    try:
        return _MESSAGE_TABLES[name]
    except KeyError:
        raise ValueError(
            f"Unknown message table '{name}'. Choose from: {', '.join(_MESSAGE_TABLES)}"
        ) from None
