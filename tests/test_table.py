#!/usr/bin/env python3
"""
Tests for StringTable load, save, merge and language management.
"""

import logging

import pytest

from gametext.entries import StringInfo
from gametext.format_handlers import FileType
from gametext.languages import LanguageID, Languages
from gametext.options import GameTextOption
from gametext.table import StringTable, get_length_info, merge_string_infos


SAMPLE_STR = (
    b'Hello\r\n'
    b'"Hi \\"there\\"\\n"\r\n'
    b'END\r\n'
    b'\r\n'
    b'Bye\r\n'
    b'"Goodbye"\r\n'
    b'END\r\n'
)


@pytest.fixture
def english_table():
    table = StringTable()
    table.language = LanguageID.US
    table.get_string_infos().extend([
        StringInfo("GUI:Start", "Start", "start_vo"),
        StringInfo("GUI:Quit", "Quit"),
    ])
    return table


def test_new_table_defaults():
    table = StringTable()

    assert table.options == GameTextOption.OPTIMIZE_MEMORY_SIZE
    assert table.language == LanguageID.UNKNOWN
    assert not table.is_any_loaded(Languages.all())


def test_load_str_sample(tmp_path):
    path = tmp_path / "sample.str"
    path.write_bytes(SAMPLE_STR)

    table = StringTable()
    assert table.load(path)

    entries = table.get_string_infos()
    assert table.language == LanguageID.UNKNOWN
    assert len(entries) == 2
    assert entries[0].text == 'Hi "there"\n'


def test_csf_round_trip(tmp_path, english_table):
    path = tmp_path / "english.csf"

    assert english_table.save(path)
    assert path.read_bytes()[:4] == b" FSC"

    loaded = StringTable()
    assert loaded.load_csf(path)
    assert loaded.language == LanguageID.US
    assert loaded.get_string_infos() == english_table.get_string_infos()


def test_csf_load_sets_language_from_file(tmp_path, english_table):
    path = tmp_path / "german.csf"
    english_table.swap_and_set_language(LanguageID.GERMAN)
    assert english_table.save_csf(path)

    loaded = StringTable()
    loaded.language = LanguageID.FRENCH
    assert loaded.load(path)

    assert loaded.language == LanguageID.GERMAN
    assert len(loaded.get_string_infos(LanguageID.GERMAN)) == 2
    assert loaded.get_string_infos(LanguageID.FRENCH) == []


def test_str_round_trip(tmp_path):
    entries = [
        StringInfo("GUI:Quote", 'Say "hi" to C:\\Games\\', "quote_vo"),
        StringInfo("GUI:Lines", "First\tcolumn\nSecond line"),
    ]
    table = StringTable()
    table.language = LanguageID.ITALIAN
    table.get_string_infos().extend(entries)

    path = tmp_path / "italian.str"
    assert table.save_str(path)

    loaded = StringTable()
    loaded.language = LanguageID.ITALIAN
    assert loaded.load_str(path)
    assert loaded.get_string_infos() == entries


def test_multi_str_round_trip(tmp_path, english_table):
    english_table.get_string_infos(LanguageID.GERMAN).extend([
        StringInfo("GUI:Quit", "Beenden"),
        StringInfo("GUI:Start", "Starten"),
    ])
    path = tmp_path / "all.multistr"
    languages = Languages(LanguageID.US, LanguageID.GERMAN)

    assert english_table.save_multi_str(path, languages)
    text = path.read_bytes()
    assert b'US: "Start"\r\n' in text
    assert b'DE: "Starten"\r\n' in text

    loaded = StringTable()
    assert loaded.load_multi_str(path, Languages(LanguageID.GERMAN))
    assert loaded.language == LanguageID.GERMAN
    assert loaded.get_string_infos(LanguageID.US) == []

    german = {info.label: info.text for info in loaded.get_string_infos(LanguageID.GERMAN)}
    assert german == {"GUI:Start": "Starten", "GUI:Quit": "Beenden"}


def test_auto_load_selects_all_usable_languages(tmp_path, english_table):
    english_table.get_string_infos(LanguageID.FRENCH).append(StringInfo("GUI:Start", "Commencer"))
    path = tmp_path / "all.multistr"
    assert english_table.save(path)

    loaded = StringTable()
    assert loaded.load(path)

    assert loaded.language == LanguageID.US
    assert loaded.get_string_infos(LanguageID.FRENCH)[0].text == "Commencer"
    assert loaded.get_string_infos(LanguageID.UK) == []


def test_unknown_extension_saves_csf(tmp_path, english_table):
    path = tmp_path / "strings.dat"
    assert english_table.save(path)
    assert path.read_bytes()[:4] == b" FSC"


def test_explicit_file_type_overrides_extension(tmp_path, english_table):
    path = tmp_path / "strings.csf"
    assert english_table.save(path, FileType.STR)
    assert path.read_bytes().startswith(b"GUI:Start\r\n")


def test_save_without_strings_fails(tmp_path, caplog):
    table = StringTable()
    path = tmp_path / "empty.csf"

    assert not table.save(path)
    assert not path.exists()
    assert "no strings loaded" in caplog.text


def test_save_multi_str_without_selected_strings_fails(tmp_path, english_table):
    path = tmp_path / "german.multistr"
    assert not english_table.save_multi_str(path, Languages(LanguageID.GERMAN))
    assert not path.exists()


def test_failed_load_keeps_state(tmp_path, english_table):
    before = list(english_table.get_string_infos())

    assert not english_table.load(tmp_path / "missing.csf")
    assert not english_table.load("")

    broken = tmp_path / "broken.csf"
    broken.write_bytes(b"not a csf file at all")
    assert not english_table.load(broken)

    assert english_table.language == LanguageID.US
    assert english_table.get_string_infos() == before


def test_save_to_missing_directory_fails(tmp_path, english_table, caplog):
    assert not english_table.save(tmp_path / "missing" / "out.csf")
    assert "Cannot open file" in caplog.text


def test_merge_and_overwrite():
    target = StringTable()
    target.language = LanguageID.US
    target.get_string_infos().append(StringInfo("A", "old"))
    original_entry = target.get_string_infos()[0]

    source = StringTable()
    source.language = LanguageID.US
    source.get_string_infos().extend([StringInfo("a", "new", "a_vo"), StringInfo("B", "x")])

    target.merge_and_overwrite(source)

    entries = target.get_string_infos()
    assert [(info.label, info.text) for info in entries] == [("A", "new"), ("B", "x")]
    assert entries[0] is original_entry
    assert entries[0].speech == "a_vo"


def test_merge_appends_after_existing_entries():
    target = [StringInfo("A", "a"), StringInfo("Z", "z")]
    source = [StringInfo("C", "c"), StringInfo("A", "A2"), StringInfo("B", "b")]

    merge_string_infos(target, source)

    assert [info.label for info in target] == ["A", "Z", "C", "B"]
    assert target[0].text == "A2"


def test_merge_selected_languages(english_table):
    source = StringTable()
    source.get_string_infos(LanguageID.GERMAN).append(StringInfo("GUI:Start", "Starten"))
    source.get_string_infos(LanguageID.US).append(StringInfo("GUI:Start", "Go"))

    english_table.merge_and_overwrite(source, Languages(LanguageID.GERMAN))

    assert english_table.get_string_infos(LanguageID.GERMAN) == [StringInfo("GUI:Start", "Starten")]
    assert english_table.get_string_infos(LanguageID.US)[0].text == "Start"


def test_is_loaded(english_table):
    both = Languages(LanguageID.US, LanguageID.GERMAN)

    assert english_table.is_loaded()
    assert not english_table.is_loaded(both)
    assert english_table.is_any_loaded(both)
    assert not english_table.is_any_loaded(Languages(LanguageID.GERMAN))
    assert not english_table.is_any_loaded(Languages())


def test_swap_string_infos(english_table):
    english_table.swap_string_infos(LanguageID.US, LanguageID.KOREAN)

    assert english_table.get_string_infos(LanguageID.US) == []
    assert len(english_table.get_string_infos(LanguageID.KOREAN)) == 2
    assert english_table.language == LanguageID.US


def test_swap_and_set_language(english_table):
    english_table.swap_and_set_language(LanguageID.POLISH)

    assert english_table.language == LanguageID.POLISH
    assert len(english_table.get_string_infos()) == 2
    assert english_table.get_string_infos(LanguageID.US) == []


def test_unload(english_table):
    english_table.get_string_infos(LanguageID.GERMAN).append(StringInfo("A", "a"))

    english_table.unload()
    assert english_table.get_string_infos(LanguageID.US) == []
    assert english_table.get_string_infos(LanguageID.GERMAN) != []

    english_table.unload(Languages.all())
    assert not english_table.is_any_loaded(Languages.all())


def test_reset(english_table):
    english_table.options = GameTextOption.CHECK_BUFFER_LENGTH_ON_SAVE
    english_table.reset()

    assert english_table.options == GameTextOption.NONE
    assert english_table.language == LanguageID.UNKNOWN
    assert not english_table.is_any_loaded(Languages.all())


def test_language_setter_rejects_out_of_range():
    table = StringTable()
    with pytest.raises(ValueError):
        table.language = 99


def test_length_info():
    info = get_length_info([
        StringInfo("AB", "é", "vo"),
        StringInfo("A", "\U0001F600", "speech"),
    ])

    assert info.max_label_len == 2
    assert info.max_text_utf8_len == 4
    assert info.max_text_utf16_len == 2
    assert info.max_speech_len == 6


def test_length_check_on_load(tmp_path, english_table, caplog):
    path = tmp_path / "english.csf"
    assert english_table.save(path)

    table = StringTable(options=GameTextOption.CHECK_BUFFER_LENGTH_ON_LOAD)
    with caplog.at_level(logging.INFO):
        assert table.load(path)

    assert "Longest label of English: 9 of 4095" in caplog.text
    assert "Longest UTF-16 text of English: 5 of 1023" in caplog.text


def test_length_check_reports_overflow(caplog):
    table = StringTable()
    table.language = LanguageID.US
    table.get_string_infos().append(StringInfo("L" * 5000, "text"))

    with pytest.raises(AssertionError):
        table.check_buffer_lengths(LanguageID.US)

    assert "Longest label of English is too long: 5000 of 4095" in caplog.text


def test_custom_logger(tmp_path, english_table, caplog):
    path = tmp_path / "english.csf"
    table = StringTable(logger=logging.getLogger("custom.gametext"))
    english_table.save(path)

    with caplog.at_level(logging.INFO, logger="custom.gametext"):
        assert table.load(path)

    messages = [record.getMessage() for record in caplog.records if record.name == "custom.gametext"]
    assert f"Reading text file '{path}' in CSF format" in messages
    assert f"File '{path}' loaded successfully" in messages
    assert "Read language: English" in messages
    assert "Read line count: 2" in messages


def test_length_check_runs_after_all_languages_loaded(tmp_path):
    path = tmp_path / "long.multistr"
    path.write_bytes(
        b'L' * 5000 + b'\r\n'
        b'US: "Long"\r\n'
        b'DE: "Lang"\r\n'
        b'END\r\n'
    )
    table = StringTable(options=GameTextOption.CHECK_BUFFER_LENGTH_ON_LOAD)

    with pytest.raises(AssertionError):
        table.load_multi_str(path, Languages(LanguageID.US, LanguageID.GERMAN))

    assert table.language == LanguageID.US
    assert table.get_string_infos(LanguageID.US)[0].text == "Long"
    assert table.get_string_infos(LanguageID.GERMAN)[0].text == "Lang"
