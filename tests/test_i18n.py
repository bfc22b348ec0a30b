from pathlib import Path

from noteflow.core.exceptions import RemoteError, ValidationError
from noteflow.core.i18n import I18n


def test_catalog_lookup_with_fallbacks(tmp_path: Path) -> None:
    (tmp_path / "messages.en.yaml").write_text(
        'save_failed: "Save failed: {error}"\nonly_en: "English"\n', encoding="utf-8"
    )
    (tmp_path / "messages.zh.yaml").write_text('save_failed: "保存失败: {error}"\n', encoding="utf-8")

    zh = I18n("zh", base_dir=tmp_path)

    assert zh.t("save_failed", error="磁盘已满") == "保存失败: 磁盘已满"
    assert zh.t("only_en") == "English"
    assert zh.t("missing_key") == "missing_key"
    assert zh.t("save_failed") == "保存失败: {error}"


def test_error_text_keeps_remote_message_verbatim() -> None:
    i18n = I18n("en")

    assert i18n.error(RemoteError("Port {8001} busy"), "start_failed") == "Start failed: Port {8001} busy"
    assert i18n.error(ValidationError("title_required"), "save_failed") == "Enter a title first."


def test_shipped_catalogs_cover_the_same_keys() -> None:
    en = I18n("en")
    zh = I18n("zh")

    assert set(en._cache) == set(zh._cache)
