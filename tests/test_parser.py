"""Tests for procfs.parser module."""

import pytest

from conftest import proc_stat_line
from nanomon.common.exceptions import CounterIOError, MissingFieldError, ParseError
from nanomon.procfs import parser
from nanomon.procfs.parser import CpuStat


class TestParseUptime:
    """Tests for parse_uptime."""

    def test_truncates_fraction(self):
        assert parser.parse_uptime("12345.99 98765.43\n") == 12345

    def test_empty_content(self):
        with pytest.raises(ParseError):
            parser.parse_uptime("")

    def test_non_numeric(self):
        with pytest.raises(ParseError):
            parser.parse_uptime("abc 123")


class TestParseLoadavg:
    """Tests for parse_loadavg."""

    def test_parses_three_averages(self):
        assert parser.parse_loadavg("0.52 0.78 1.21 2/456 12345\n") == (0.52, 0.78, 1.21)

    def test_too_few_tokens(self):
        with pytest.raises(ParseError):
            parser.parse_loadavg("0.52 0.78")

    def test_non_numeric(self):
        with pytest.raises(ParseError):
            parser.parse_loadavg("x 0.78 1.21")


class TestParseCpuStat:
    """Tests for parse_cpu_stat."""

    def test_parses_aggregate_line(self):
        stat = parser.parse_cpu_stat("cpu  1000 100 500 10000 200 50 30 0 0 0\n")
        assert stat == CpuStat(
            user=1000, nice=100, system=500, idle=10000, iowait=200, irq=50, softirq=30, steal=0
        )

    def test_ignores_per_core_lines(self):
        content = "cpu0 1 1 1 1 1 1 1 1\ncpu  2 2 2 2 2 2 2 2\n"
        assert parser.parse_cpu_stat(content).user == 2

    def test_total_and_busy(self):
        stat = CpuStat(user=10, nice=0, system=5, idle=80, iowait=5)
        assert stat.total == 100
        assert stat.busy == 15

    def test_missing_line(self):
        with pytest.raises(ParseError, match="Missing cpu line"):
            parser.parse_cpu_stat("cpu0 1 2 3 4 5 6 7 8\nintr 1\n")

    def test_short_line(self):
        with pytest.raises(ParseError):
            parser.parse_cpu_stat("cpu  1 2 3 4 5 6 7\n")

    def test_non_numeric_field(self):
        with pytest.raises(ParseError):
            parser.parse_cpu_stat("cpu  1 2 x 4 5 6 7 8\n")


class TestParseMeminfo:
    """Tests for parse_meminfo."""

    def test_converts_kb_to_bytes(self):
        assert parser.parse_meminfo("MemTotal:    1024 kB\n") == {"MemTotal": 1048576}

    def test_value_without_unit(self):
        assert parser.parse_meminfo("HugePages_Total:       0\n") == {"HugePages_Total": 0}

    def test_skips_malformed_lines(self):
        content = "MemTotal: 10 kB\ngarbage line\nMemFree: lots kB\nCached: 2 kB\n"
        assert parser.parse_meminfo(content) == {"MemTotal": 10240, "Cached": 2048}


class TestParseMounts:
    """Tests for parse_mounts."""

    def test_parses_entries(self):
        mounts = parser.parse_mounts("/dev/sda1 / ext4 rw 0 0\nproc /proc proc rw 0 0\n")
        assert [(m.device, m.mount_point, m.filesystem) for m in mounts] == [
            ("/dev/sda1", "/", "ext4"),
            ("proc", "/proc", "proc"),
        ]

    def test_skips_short_lines(self):
        assert parser.parse_mounts("/dev/sda1 /\n\n") == []


class TestParseNetStats:
    """Tests for parse_net_stats."""

    def test_reads_all_counters(self, tmp_path):
        for name, value in zip(parser.NET_COUNTER_FILES, (100, 200, 1, 2)):
            (tmp_path / name).write_text(f"{value}\n")
        assert parser.parse_net_stats(tmp_path) == (100, 200, 1, 2)

    def test_missing_counter_file(self, tmp_path):
        (tmp_path / "rx_bytes").write_text("100\n")
        with pytest.raises(CounterIOError):
            parser.parse_net_stats(tmp_path)

    def test_malformed_counter(self, tmp_path):
        for name in parser.NET_COUNTER_FILES:
            (tmp_path / name).write_text("12\n")
        (tmp_path / "tx_errors").write_text("-3\n")
        with pytest.raises(ParseError):
            parser.parse_net_stats(tmp_path)


class TestParseProcStat:
    """Tests for parse_proc_stat."""

    def test_parses_fields(self):
        stat = parser.parse_proc_stat(
            proc_stat_line(42, "bash", state="R", ppid=7, utime=300, stime=200, rss=1000)
        )
        assert stat.pid == 42
        assert stat.ppid == 7
        assert stat.state == "R"
        assert stat.utime == 300
        assert stat.stime == 200
        assert stat.rss == 1000

    def test_command_with_spaces_and_parens(self):
        stat = parser.parse_proc_stat(proc_stat_line(99, "my (weird) cmd", ppid=3, rss=8))
        assert stat.pid == 99
        assert stat.ppid == 3
        assert stat.rss == 8

    def test_missing_open_paren(self):
        with pytest.raises(ParseError):
            parser.parse_proc_stat("42 bash S 1")

    def test_missing_close_paren(self):
        with pytest.raises(ParseError):
            parser.parse_proc_stat("42 (bash S 1")

    def test_too_few_fields(self):
        with pytest.raises(ParseError):
            parser.parse_proc_stat("42 (bash) S 1 0 0")

    def test_non_numeric_pid(self):
        with pytest.raises(ParseError):
            parser.parse_proc_stat(proc_stat_line(1, "x").replace("1 (x)", "abc (x)"))


class TestParseProcStatusUid:
    """Tests for parse_proc_status_uid."""

    def test_real_uid(self):
        assert parser.parse_proc_status_uid("Name:\tbash\nUid:\t1000\t0\t0\t0\n") == 1000

    def test_missing_uid_line(self):
        with pytest.raises(MissingFieldError):
            parser.parse_proc_status_uid("Name:\tbash\nGid:\t0\t0\t0\t0\n")

    def test_missing_field_is_parse_error(self):
        with pytest.raises(ParseError):
            parser.parse_proc_status_uid("")


class TestParseCmdline:
    """Tests for parse_cmdline."""

    def test_joins_arguments(self):
        assert parser.parse_cmdline("python3\0-m\0http.server\0") == "python3 -m http.server"

    def test_empty(self):
        assert parser.parse_cmdline("") == ""


class TestParseCgroupContainerId:
    """Tests for parse_cgroup_container_id."""

    @pytest.mark.parametrize(
        "content",
        [
            "0::/docker/abc123\n",
            "12:memory:/docker/abc123\n",
            "0::/system.slice/docker-abc123.scope\n",
            "0::/machine.slice/libpod-abc123.scope/container\n",
            "0::/kubepods.slice/cri-containerd-abc123.scope\n",
        ],
    )
    def test_container_paths(self, content):
        assert parser.parse_cgroup_container_id(content) == "abc123"

    def test_host_process(self):
        assert parser.parse_cgroup_container_id("0::/user.slice/user-1000.slice\n") is None

    def test_skips_conmon_scope(self):
        content = "0::/machine.slice/libpod-conmon-abc123.scope\n"
        assert parser.parse_cgroup_container_id(content) is None

    def test_empty(self):
        assert parser.parse_cgroup_container_id("") is None
