import io

from dacnode.version import BUILD_DATE, VERSION, get_version_info, print_version


def test_first_line_holds_version():
    lines = get_version_info().splitlines()
    assert lines[0] == "Version:      v0.1.0"
    assert VERSION == "v0.1.0"


def test_info_has_six_lines_ending_in_newline():
    info = get_version_info()
    assert info.endswith("\n")
    assert len(info.splitlines()) == 6


def test_labels_are_aligned():
    for line in get_version_info().splitlines():
        assert line[:14].rstrip().endswith(":")
        assert line[14] != " "


def test_git_and_build_lines():
    info = get_version_info()
    assert "Git revision: undefined\n" in info
    assert "Git branch:   undefined\n" in info
    assert f"Built:        {BUILD_DATE}\n" in info


def test_print_version_writes_info():
    buffer = io.StringIO()
    print_version(buffer)
    assert buffer.getvalue() == get_version_info()