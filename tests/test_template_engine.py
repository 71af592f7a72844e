import pytest

from epub_tailor.models import Entry, Profile, TextRule
from epub_tailor.template_engine import apply_template
from epub_tailor.text import decode_document, declared_encoding, sniff_encoding

from tests.helpers import COMIC_META_PATTERN


def _profile(rules=(), removals=()):
    return Profile(id="t", name="Test", text_rules=tuple(rules), remove_paths=frozenset(removals))


def _content(entries, path):
    return next(e.content for e in entries if e.path == path)


def test_performs_text_replacements(text_entries, log):
    profile = _profile([TextRule("OEBPS/content.opf", COMIC_META_PATTERN, "")])

    result = apply_template(text_entries, profile, on_log=log.append)

    assert _content(result, "OEBPS/content.opf") == b"some content"
    assert "Modifying OEBPS/content.opf..." in log


def test_removes_specified_files(text_entries, log):
    result = apply_template(text_entries, _profile(removals=["file-to-remove.txt"]), on_log=log.append)

    assert [e.path for e in result] == ["OEBPS/content.opf", "file-to-keep.txt"]
    assert "Removing file: file-to-remove.txt" in log


def test_input_list_is_not_mutated(text_entries):
    before = list(text_entries)

    apply_template(text_entries, _profile(removals=["file-to-remove.txt"]))

    assert text_entries == before


def test_missing_target_is_a_warning_not_an_error(text_entries, log):
    profile = _profile([
        TextRule("OEBPS/missing.opf", "x", "y"),
        TextRule("file-to-keep.txt", "keep", "kept"),
    ])

    result = apply_template(text_entries, profile, on_log=log.append)

    assert "Warning: File to modify not found: OEBPS/missing.opf" in log
    assert _content(result, "file-to-keep.txt") == b"kept me"


def test_only_first_match_is_replaced():
    entries = [Entry("a.xhtml", b"<p>x</p><p>x</p>")]

    result = apply_template(entries, _profile([TextRule("a.xhtml", "x", "y")]))

    assert result[0].content == b"<p>y</p><p>x</p>"


def test_rules_apply_in_declared_order():
    entries = [Entry("a.txt", b"abc")]
    rules = [TextRule("a.txt", "a", "b"), TextRule("a.txt", "bb", "X")]

    assert apply_template(entries, _profile(rules))[0].content == b"Xc"


def test_declared_encoding_is_decoded_and_written_back_as_utf8():
    doc = '<?xml version="1.0" encoding="ISO-8859-1"?>\n<p>café NAME</p>'.encode("iso-8859-1")
    entries = [Entry("ch.xhtml", doc)]

    result = apply_template(entries, _profile([TextRule("ch.xhtml", "NAME", "Zoë")]))

    assert result[0].content.decode("utf-8").endswith("<p>café Zoë</p>")


def test_unsupported_encoding_falls_back_to_utf8(log):
    doc = '<?xml version="1.0" encoding="x-no-such-codec"?><p>naïve</p>'.encode("utf-8")
    entries = [Entry("ch.xhtml", doc)]

    result = apply_template(entries, _profile([TextRule("ch.xhtml", "naïve", "plain")]), on_log=log.append)

    assert result[0].content.endswith(b"<p>plain</p>")
    assert any("Unsupported encoding 'x-no-such-codec'" in line for line in log)


def test_invalid_pattern_is_logged_and_skipped(log):
    entries = [Entry("a.txt", b"abc")]

    result = apply_template(entries, _profile([TextRule("a.txt", "(", "")]), on_log=log.append)

    assert result[0].content == b"abc"
    assert any(line.startswith("Warning: Invalid pattern") for line in log)


def test_progress_counts_rules_and_removals(text_entries, progress):
    profile = _profile(
        [TextRule("OEBPS/content.opf", COMIC_META_PATTERN, ""), TextRule("nope", "x", "")],
        ["file-to-remove.txt", "not-in-book.txt"],
    )

    apply_template(text_entries, profile, on_progress=progress.append)

    assert progress == [100 / 3, 200 / 3, 100.0]


def test_empty_profile_jumps_to_100(text_entries, progress):
    result = apply_template(text_entries, _profile(), on_progress=progress.append)

    assert progress == [100]
    assert result == text_entries


def test_sniffing_reads_the_xml_declaration():
    assert declared_encoding(b'<?xml version="1.0" encoding="UTF-16"?>') == "utf-16"
    assert declared_encoding(b"<html/>") is None
    assert sniff_encoding(b"<p/>") == ("utf-8", None)
    assert sniff_encoding(b"<?xml version='1.0' encoding='windows-1252'?>") == ("windows-1252", None)


@pytest.mark.parametrize("codec", ["rot13", "hex", "base64", "zlib"])
def test_binary_codec_declaration_falls_back_to_utf8(codec, log):
    doc = f'<?xml version="1.0" encoding="{codec}"?><p>naïve</p>'.encode("utf-8")
    entries = [Entry("ch.xhtml", doc)]

    result = apply_template(entries, _profile([TextRule("ch.xhtml", "naïve", "plain")]), on_log=log.append)

    assert result[0].content.endswith(b"<p>plain</p>")
    assert any(f"Unsupported encoding '{codec}'" in line for line in log)


def test_codec_without_replace_handling_falls_back_to_utf8():
    doc = b'<?xml version="1.0" encoding="idna"?><p>x</p>'

    text, warning = decode_document(doc)

    assert text.endswith("<p>x</p>")
    assert "Unsupported encoding 'idna'" in warning
