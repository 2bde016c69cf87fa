from appwyrm.fzf import FzfFilter
from appwyrm.scanner import CandidateEntry

ENTRIES = (
	CandidateEntry("Alpha", "/Applications/Alpha.app"),
	CandidateEntry("Zed", "/Applications/Zed.app"),
)


def test_echo_returns_input_in_order(fake_command):
	fzf = FzfFilter(fake_command("cat"))
	assert fzf.filter("a", ENTRIES) == ENTRIES


def test_preserves_tool_order(fake_command):
	exe = fake_command("printf 'Zed\\t/Applications/Zed.app\\nAlpha\\t/Applications/Alpha.app\\n'")
	assert FzfFilter(exe).filter("a", ENTRIES) == (ENTRIES[1], ENTRIES[0])


def test_passes_query_and_delimiter(fake_command, tmp_path):
	log = tmp_path / "args"
	exe = fake_command(f'for a in "$@"; do echo "$a" >> "{log}"; done; cat > /dev/null')
	FzfFilter(exe).filter("saf ari", ENTRIES)

	args = log.read_text().splitlines()
	assert args[:2] == ["--filter", "saf ari"]
	assert "--nth=1" in args


def test_no_match_exit_is_a_genuine_empty_result(fake_command):
	assert FzfFilter(fake_command("cat > /dev/null; exit 1")).filter("q", ENTRIES) == ()


def test_failure_exit_is_unavailable(fake_command):
	assert FzfFilter(fake_command("cat > /dev/null; exit 2")).filter("q", ENTRIES) is None


def test_timeout_is_unavailable(fake_command):
	exe = fake_command("exec sleep 5")
	assert FzfFilter(exe, timeout=0.2).filter("q", ENTRIES) is None


def test_undecodable_output_is_unavailable(fake_command):
	exe = fake_command("cat > /dev/null; printf 'Bad\\t/\\377.app\\n'")
	assert FzfFilter(exe).filter("q", ENTRIES) is None


def test_malformed_lines_are_skipped(fake_command):
	exe = fake_command("cat > /dev/null; printf 'garbage\\nZed\\t/Applications/Zed.app\\n\\n'")
	assert FzfFilter(exe).filter("z", ENTRIES) == (ENTRIES[1],)


def test_entries_that_break_the_line_format_are_not_sent(fake_command):
	entries = ENTRIES + (CandidateEntry("Bad\tName", "/Applications/Bad.app"),)
	assert FzfFilter(fake_command("cat")).filter("a", entries) == ENTRIES


def test_empty_query_returns_everything_without_running(tmp_path):
	fzf = FzfFilter(str(tmp_path / "does-not-exist"))
	assert fzf.filter("", ENTRIES) == ENTRIES


def test_missing_executable_is_unavailable(tmp_path):
	assert FzfFilter(str(tmp_path / "does-not-exist")).filter("a", ENTRIES) is None


def test_detect_tries_absolute_candidates_in_order(fake_command, tmp_path):
	exe = fake_command("cat")
	plain = tmp_path / "not-executable"
	plain.write_text("")

	fzf = FzfFilter.detect([str(tmp_path / "nope"), str(plain), exe], timeout=0.5)
	assert fzf is not None
	assert (fzf.executable, fzf.timeout) == (exe, 0.5)

	assert FzfFilter.detect([str(tmp_path / "nope"), str(tmp_path)]) is None
