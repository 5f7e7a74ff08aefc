import os

import pytest

from cgroupkit.errors import CgroupError, InvalidFormatError
from cgroupkit.parsing import (
    get_stat_file_content_uint64,
    parse_cgroup_procs_file,
    parse_kv,
    parse_rdma_kv,
    parse_uint,
    rdma_stats,
    read_hugetlb_stats,
    read_io_stats,
    read_kv_stats_file,
    read_single_file,
    remove,
    systemd_unit_from_path,
    to_rdma_entry,
)
from cgroupkit.stats import RdmaEntry

MAX_UINT64 = 18446744073709551615


def _write(directory, name, text):
    (directory / name).write_text(text)


@pytest.mark.parametrize("text,expected", [("0", 0), ("123", 123), ("-1", 0), ("-99999999999999999999999", 0)])
def test_parse_uint_values(text, expected):
    assert parse_uint(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "max", "+5", "18446744073709551616", "1.5"])
def test_parse_uint_rejects(text):
    with pytest.raises(InvalidFormatError):
        parse_uint(text)


def test_parse_uint_upper_bound_round_trip():
    assert parse_uint(str(MAX_UINT64)) == MAX_UINT64


def test_parse_kv_number_and_string():
    assert parse_kv("usage_usec 100") == ("usage_usec", 100)
    assert parse_kv("pids max") == ("pids", "max")
    assert parse_kv("low -5") == ("low", 0)


@pytest.mark.parametrize("raw", ["", "single", "a b c"])
def test_parse_kv_rejects(raw):
    with pytest.raises(InvalidFormatError):
        parse_kv(raw)


def test_parse_cgroup_procs_file(tmp_path):
    _write(tmp_path, "cgroup.procs", "12\n34\n\n56\n")
    assert parse_cgroup_procs_file(tmp_path / "cgroup.procs") == [12, 34, 56]


def test_parse_cgroup_procs_file_invalid(tmp_path):
    _write(tmp_path, "cgroup.procs", "12\nabc\n")
    with pytest.raises(InvalidFormatError):
        parse_cgroup_procs_file(tmp_path / "cgroup.procs")


def test_parse_cgroup_procs_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_cgroup_procs_file(tmp_path / "cgroup.procs")


def test_read_kv_stats_file(tmp_path):
    _write(tmp_path, "cpu.stat", "usage_usec 500\nuser_usec 300\nstate max\n")
    assert read_kv_stats_file(tmp_path, "cpu.stat") == {
        "usage_usec": 500,
        "user_usec": 300,
        "state": "max",
    }


def test_read_kv_stats_file_bad_line(tmp_path):
    _write(tmp_path, "memory.stat", "anon 1\nbroken line here\n")
    with pytest.raises(InvalidFormatError) as excinfo:
        read_kv_stats_file(tmp_path, "memory.stat")
    assert "broken line here" in str(excinfo.value)


def test_read_kv_stats_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_kv_stats_file(tmp_path, "cpu.stat")


def test_read_single_file(tmp_path):
    _write(tmp_path, "pids.current", "42\n")
    _write(tmp_path, "pids.max", "max\n")
    assert read_single_file(tmp_path, "pids.current") == 42
    assert read_single_file(tmp_path, "pids.max") == "max"


def test_get_stat_file_content_uint64(tmp_path):
    _write(tmp_path, "memory.current", "4096\n")
    _write(tmp_path, "memory.max", "max\n")
    _write(tmp_path, "memory.bad", "junk\n")
    assert get_stat_file_content_uint64(tmp_path / "memory.current") == 4096
    assert get_stat_file_content_uint64(tmp_path / "memory.max") == MAX_UINT64
    assert get_stat_file_content_uint64(tmp_path / "memory.bad") == get_stat_file_content_uint64(
        tmp_path / "missing"
    )


def test_read_io_stats(tmp_path):
    _write(
        tmp_path,
        "io.stat",
        "8:0 rbytes=100 wbytes=200 rios=3 wios=4 dbytes=9\nbogus\n253:1 rbytes=7 wios=x\n",
    )
    usage = read_io_stats(tmp_path)
    assert [(e.major, e.minor, e.rbytes, e.wbytes, e.rios, e.wios) for e in usage] == [
        (8, 0, 100, 200, 3, 4),
        (253, 1, 7, 0, 0, 0),
    ]


def test_read_io_stats_stops_at_bad_device(tmp_path):
    _write(tmp_path, "io.stat", "8:0 rbytes=1\nx:1 rbytes=2\n8:16 rbytes=3\n")
    assert [e.rbytes for e in read_io_stats(tmp_path)] == [1]


def test_read_io_stats_missing(tmp_path):
    assert read_io_stats(tmp_path) == []


def test_rdma_stats(tmp_path):
    _write(tmp_path, "rdma.max", "mlx4_0 hca_handle=2 hca_object=max\nshort line\n")
    entries = rdma_stats(tmp_path / "rdma.max")
    assert entries == [RdmaEntry(device="mlx4_0", hca_handles=2, hca_objects=4294967295)]


def test_rdma_stats_missing(tmp_path):
    assert rdma_stats(tmp_path / "rdma.current") == []


def test_parse_rdma_kv_ignores_bad_pairs():
    entry = RdmaEntry(device="dev")
    parse_rdma_kv("hca_handle=5", entry)
    parse_rdma_kv("hca_object=4294967296", entry)
    parse_rdma_kv("garbage", entry)
    parse_rdma_kv("unknown=3", entry)
    assert entry == RdmaEntry(device="dev", hca_handles=5, hca_objects=0)


def test_to_rdma_entry():
    entries = to_rdma_entry(["a hca_handle=1 hca_object=2", "", "b hca_object=-3 hca_handle=4"])
    assert entries == [
        RdmaEntry(device="a", hca_handles=1, hca_objects=2),
        RdmaEntry(device="b", hca_handles=4, hca_objects=0),
    ]


def test_read_hugetlb_stats(tmp_path):
    _write(tmp_path, "hugetlb.2MB.max", "1073741824\n")
    _write(tmp_path, "hugetlb.2MB.current", "2097152\n")
    _write(tmp_path, "hugetlb.1GB.max", "max\n")
    _write(tmp_path, "hugetlb.1GB.events", "max 0\n")
    _write(tmp_path, "memory.max", "10\n")
    stats = {s.pagesize: s for s in read_hugetlb_stats(tmp_path)}
    assert set(stats) == {"2MB", "1GB"}
    assert (stats["2MB"].max, stats["2MB"].current) == (1073741824, 2097152)
    assert (stats["1GB"].max, stats["1GB"].current) == (MAX_UINT64, 0)


def test_read_hugetlb_stats_missing_dir(tmp_path):
    assert read_hugetlb_stats(tmp_path / "nope") == []


def test_remove_tree(tmp_path):
    group = tmp_path / "group"
    (group / "child").mkdir(parents=True)
    _write(group, "cgroup.procs", "")
    _write(group / "child", "cgroup.procs", "")
    remove(group)
    assert not group.exists()


def test_remove_missing_path(tmp_path):
    remove(tmp_path / "absent")
    assert os.listdir(tmp_path) == []


def test_systemd_unit_from_path():
    assert systemd_unit_from_path("/sys/fs/cgroup/system.slice/foo.scope") == "foo.scope"
    assert systemd_unit_from_path("bare.slice") == "bare.slice"
    assert systemd_unit_from_path("/a/b/") == ""