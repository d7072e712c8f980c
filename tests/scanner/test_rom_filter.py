import pytest

from pixelmeta.scanner.rom_filter import clean_rom_name, filter_roms, should_exclude


@pytest.mark.unit
@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("Super Mario World (USA).sfc", "Super Mario World"),
        ("Sonic The Hedgehog (USA, Europe) [!].md", "Sonic The Hedgehog"),
        ("Zelda {Proto}  (Beta) .zip", "Zelda"),
        ("Tetris.gb", "Tetris"),
        ("(USA).sfc", ""),
    ],
)
def test_clean_rom_name_strips_tags_and_extension(file_name, expected):
    assert clean_rom_name(file_name) == expected


@pytest.mark.unit
def test_clean_rom_name_collapses_whitespace():
    assert clean_rom_name("Street   Fighter\tII (Japan).sfc") == "Street Fighter II"


@pytest.mark.unit
def test_should_exclude_glob_is_case_insensitive():
    assert should_exclude("README.TXT", ["*.txt"])
    assert should_exclude("disk?.img", ["DISK?.IMG"])
    assert not should_exclude("game.sfc", ["*.txt"])


@pytest.mark.unit
def test_should_exclude_basename_match_ignores_extension():
    assert should_exclude("bios.bin", ["bios.rom"])
    assert should_exclude("bios.bin", ["system/bios"])


@pytest.mark.unit
def test_should_exclude_substring_match():
    assert should_exclude("[BIOS] Sega CD (USA).bin", ["bios"])


@pytest.mark.unit
def test_should_exclude_ignores_empty_patterns():
    assert not should_exclude("anything.sfc", [])
    assert not should_exclude("anything.sfc", ["", "   "])
    assert not should_exclude("anything.sfc", None)


@pytest.mark.unit
def test_filter_roms_never_keeps_excluded_files():
    files = ["Alpha.sfc", "notes.txt", "Beta.sfc", "bios.sfc", "Gamma.SFC"]
    patterns = ["*.txt", "bios"]

    kept, excluded = filter_roms(files, exclude=patterns)

    assert kept == ["Alpha.sfc", "Beta.sfc", "Gamma.SFC"]
    assert excluded == ["notes.txt", "bios.sfc"]
    assert not any(should_exclude(name, patterns) for name in kept)


@pytest.mark.unit
def test_filter_roms_glob_prefix_example():
    kept, excluded = filter_roms(["a.zip", "B.ZIP", "skip_me.zip"], exclude=["skip_*"])

    assert kept == ["a.zip", "B.ZIP"]
    assert excluded == ["skip_me.zip"]


@pytest.mark.unit
def test_filter_roms_applies_extension_filter_first():
    files = ["Alpha.sfc", "Alpha.srm", "Beta.ZIP", "cover.png"]

    kept, excluded = filter_roms(files, extensions=["sfc", ".zip"])

    assert kept == ["Alpha.sfc", "Beta.ZIP"]
    assert excluded == ["Alpha.srm", "cover.png"]
