#!/usr/bin/env python3
"""
Tests for STR and Multi STR handlers.
Covers the record state machine, escaping, comments and language codes.
"""

import io

import pytest

from gametext.entries import StringInfo, StringInfosArray
from gametext.format_handlers import FormatRegistry, MultiStrHandler, StrHandler, strip_obsolete_spaces
from gametext.languages import LanguageID, Languages
from gametext.options import GameTextOption


SAMPLE_STR = (
    b'Hello\r\n'
    b'"Hi \\"there\\"\\n"\r\n'
    b'END\r\n'
    b'\r\n'
    b'Bye\r\n'
    b'"Goodbye"\r\n'
    b'END\r\n'
)

SAMPLE_MULTI_STR = (
    b'GUI:Start\r\n'
    b'US: "Start"\r\n'
    b'DE: "Starten"\r\n'
    b'US: start_vo\r\n'
    b'END\r\n'
    b'\r\n'
    b'GUI:Quit\r\n'
    b'DE: "Beenden"\r\n'
    b'END\r\n'
)


@pytest.fixture
def handler():
    """Fixture to create StrHandler instance."""
    return StrHandler()


@pytest.fixture
def multi_handler():
    """Fixture to create MultiStrHandler instance."""
    return MultiStrHandler()


def read_str(handler, data, language=LanguageID.US, languages=None, options=GameTextOption.NONE):
    if languages is None:
        languages = Languages.all()
    return handler.read(io.BytesIO(data), language, languages, options)


def write_str(handler, string_infos, language=LanguageID.US, languages=None, options=GameTextOption.NONE):
    if languages is None:
        languages = Languages(language)
    stream = io.BytesIO()
    assert handler.write(stream, string_infos, language, languages, options)
    return stream.getvalue()


def test_registration():
    """STR handlers are registered by extension."""
    assert FormatRegistry.get_handler("str").name == "str"
    assert FormatRegistry.get_handler("MULTISTR").supports_multi_language
    with pytest.raises(ValueError):
        FormatRegistry.get_handler("po")


def test_two_entry_file(handler):
    result = read_str(handler, SAMPLE_STR)

    assert result.success
    assert result.language == LanguageID.US

    entries = result.string_infos[LanguageID.US]
    assert len(entries) == 2
    assert entries[0].label == "Hello"
    assert entries[0].text == 'Hi "there"\n'
    assert entries[1].label == "Bye"
    assert entries[1].text == "Goodbye"


def test_reads_into_callers_language(handler):
    result = read_str(handler, SAMPLE_STR, language=LanguageID.FRENCH)

    assert result.language == LanguageID.FRENCH
    assert len(result.string_infos[LanguageID.FRENCH]) == 2
    assert result.string_infos[LanguageID.US] == []


def test_lf_line_endings(handler):
    result = read_str(handler, SAMPLE_STR.replace(b'\r\n', b'\n'))

    assert [info.label for info in result.string_infos[LanguageID.US]] == ["Hello", "Bye"]


def test_comments_and_blank_lines(handler):
    data = (
        b'// Main menu strings\r\n'
        b'\r\n'
        b'\\\\ old style comment\r\n'
        b'GUI:Start\r\n'
        b'// inside record\r\n'
        b'"Start"\r\n'
        b'end\r\n'
    )
    result = read_str(handler, data)

    entries = result.string_infos[LanguageID.US]
    assert len(entries) == 1
    assert entries[0].label == "GUI:Start"
    assert entries[0].text == "Start"


def test_speech_line(handler):
    data = b'GUI:Start\r\n"Start"\r\nstart_vo\r\nEND\r\n'
    entries = read_str(handler, data).string_infos[LanguageID.US]

    assert entries[0].speech == "start_vo"


def test_language_prefix_ignored_in_single_variant(handler):
    data = b'GUI:Start\r\nUS: "Start"\r\nEND\r\n'
    entries = read_str(handler, data).string_infos[LanguageID.US]

    assert entries[0].text == "Start"


def test_speech_with_colon_prefix_round_trip(handler):
    string_infos = StringInfosArray()
    string_infos[LanguageID.US] = [
        StringInfo("GUI:Hello", "Hello", "vo:hello"),
        StringInfo("GUI:Clip", "Clip", "US:clip"),
    ]

    entries = read_str(handler, write_str(handler, string_infos)).string_infos[LanguageID.US]

    assert entries[0].speech == "vo:hello"
    # A registered language code is still read as a prefix
    assert entries[1].speech == "clip"


def test_unterminated_record_dropped(handler):
    data = SAMPLE_STR + b'Orphan\r\n"No end"\r\n'
    entries = read_str(handler, data).string_infos[LanguageID.US]

    assert [info.label for info in entries] == ["Hello", "Bye"]


def test_no_records_is_failure(handler):
    result = read_str(handler, b'// nothing here\r\nOrphan\r\n"text"\r\n')
    assert not result.success


def test_unescape_sequences(handler):
    data = b'L\r\n"a\\tb\\?c\\\'d\\\\e"\r\nEND\r\n'
    entries = read_str(handler, data).string_infos[LanguageID.US]

    assert entries[0].text == "a\tb?c'd\\e"


def test_trailing_backslash_before_quote(handler):
    data = b'L\r\n"path\\\\"\r\nEND\r\n'
    entries = read_str(handler, data).string_infos[LanguageID.US]

    assert entries[0].text == "path\\"


def test_raw_tab_becomes_space(handler):
    data = b'L\r\n"a\tb"\r\nEND\r\n'
    entries = read_str(handler, data, options=GameTextOption.KEEP_OBSOLETE_SPACES_ON_LOAD).string_infos[LanguageID.US]

    assert entries[0].text == "a b"


def test_obsolete_spaces(handler):
    data = b'L\r\n"  Too   many  spaces \\n here "\r\nEND\r\n'

    stripped = read_str(handler, data).string_infos[LanguageID.US][0].text
    kept = read_str(handler, data, options=GameTextOption.KEEP_OBSOLETE_SPACES_ON_LOAD).string_infos[LanguageID.US][0].text

    assert stripped == "Too many spaces\nhere"
    assert kept == "  Too   many  spaces \n here "


def test_strip_obsolete_spaces():
    assert strip_obsolete_spaces("  a  b  ") == "a b"
    assert strip_obsolete_spaces("a \n b") == "a\nb"
    assert strip_obsolete_spaces("") == ""


def test_invalid_utf8_replaced(handler):
    data = b'L\r\n"a\xffb"\r\nEND\r\n'
    entries = read_str(handler, data).string_infos[LanguageID.US]

    assert entries[0].text == "a\ufffdb"


def test_write_escapes(handler):
    string_infos = StringInfosArray()
    string_infos[LanguageID.US] = [StringInfo("L", 'a"b\\c\n\td', "vo")]

    data = write_str(handler, string_infos)

    assert data == b'L\r\n"a\\"b\\\\c\\n\\td"\r\nvo\r\nEND\r\n\r\n'


def test_write_extra_line_feed(handler):
    string_infos = StringInfosArray()
    string_infos[LanguageID.US] = [StringInfo("L", "a\nb")]

    data = write_str(handler, string_infos, options=GameTextOption.WRITE_EXTRA_LF_ON_STR_SAVE)

    assert data == b'L\r\n"a\\n\r\nb"\r\nEND\r\n\r\n'
    assert read_str(handler, data).string_infos[LanguageID.US][0].text == "a\nb"


def test_write_skips_unlabelled(handler, caplog):
    string_infos = StringInfosArray()
    string_infos[LanguageID.US] = [StringInfo("", "lost"), StringInfo("B", "kept")]

    data = write_str(handler, string_infos)

    assert data == b'B\r\n"kept"\r\nEND\r\n\r\n'
    assert "String 1 has no label" in caplog.text


def test_round_trip(handler):
    original = [
        StringInfo("GUI:Quote", 'Say "hi" to C:\\Games\\', "quote_vo"),
        StringInfo("GUI:Lines", "First\tcolumn\nSecond line"),
        StringInfo("GUI:Plain", "Plain"),
    ]
    string_infos = StringInfosArray()
    string_infos[LanguageID.US] = original

    result = read_str(handler, write_str(handler, string_infos))

    assert result.string_infos[LanguageID.US] == original


def test_multi_read(multi_handler):
    result = read_str(multi_handler, SAMPLE_MULTI_STR, languages=Languages(LanguageID.US, LanguageID.GERMAN))

    assert result.success
    assert result.language == LanguageID.US

    english = result.string_infos[LanguageID.US]
    german = result.string_infos[LanguageID.GERMAN]

    assert [info.label for info in english] == ["GUI:Start", "GUI:Quit"]
    assert english[0] == StringInfo("GUI:Start", "Start", "start_vo")
    assert english[1] == StringInfo("GUI:Quit", "", "")
    assert german[0] == StringInfo("GUI:Start", "Starten", "")
    assert german[1] == StringInfo("GUI:Quit", "Beenden", "")


def test_multi_read_discards_unselected(multi_handler):
    result = read_str(multi_handler, SAMPLE_MULTI_STR, languages=Languages(LanguageID.GERMAN))

    assert result.language == LanguageID.GERMAN
    assert result.string_infos[LanguageID.US] == []
    assert len(result.string_infos[LanguageID.GERMAN]) == 2


def test_multi_read_unknown_code_discarded(multi_handler):
    data = b'L\r\nXX: "ignored"\r\nFR: "Bonjour"\r\nEND\r\n'
    result = read_str(multi_handler, data, languages=Languages(LanguageID.US, LanguageID.FRENCH))

    assert result.language == LanguageID.FRENCH
    assert result.string_infos[LanguageID.FRENCH][0].text == "Bonjour"
    assert result.string_infos[LanguageID.US][0].text == ""


def test_multi_write(multi_handler):
    string_infos = StringInfosArray()
    string_infos[LanguageID.US] = [StringInfo("GUI:Start", "Start", "start_vo")]
    string_infos[LanguageID.GERMAN] = [StringInfo("GUI:Start", "Starten")]

    data = write_str(
        multi_handler, string_infos, languages=Languages(LanguageID.US, LanguageID.GERMAN))

    assert data == (
        b'GUI:Start\r\n'
        b'US: "Start"\r\n'
        b'DE: "Starten"\r\n'
        b'US: start_vo\r\n'
        b'END\r\n'
        b'\r\n'
    )


def test_multi_round_trip(multi_handler):
    languages = Languages(LanguageID.US, LanguageID.GERMAN, LanguageID.FRENCH)
    string_infos = StringInfosArray()
    string_infos[LanguageID.US] = [StringInfo("A", "Apple", "a_vo"), StringInfo("B", "Bread")]
    string_infos[LanguageID.GERMAN] = [StringInfo("B", "Brot"), StringInfo("A", "Apfel")]
    string_infos[LanguageID.FRENCH] = [StringInfo("C", "Chat")]

    result = read_str(multi_handler, write_str(multi_handler, string_infos, languages=languages), languages=languages)

    for language in languages:
        loaded = {info.label: info for info in result.string_infos[language]}
        for info in string_infos[language]:
            assert loaded[info.label] == info
