from collections import Counter

import pytest

from veloxdfs.messages import FileDescription
from veloxdfs.scheduler_slots import LeanScheduler, MultiwaveScheduler, StealScheduler


class FakeBoundaries:
    def random_within_boundaries(self, node_id):
        return node_id * 1000 + 7


NODES = ["a", "b", "c"]


def make_fd(n, nodes=NODES):
    hosts = [nodes[i % len(nodes)] for i in range(n)]
    return FileDescription(
        name="file",
        blocks=[f"file_{i}" for i in range(n)],
        hash_keys=[100 + i for i in range(n)],
        block_size=[10 * (i + 1) for i in range(n)],
        block_hosts=hosts,
        primary_files=[f"primary_{i}" for i in range(n)],
        offsets=[i for i in range(n)],
        offsets_in_file=[2 * i for i in range(n)],
        primary_sequences=[i for i in range(n)],
    )


def all_names(fd):
    return Counter(b.name for lb in fd.logical_blocks for b in lb.physical_blocks)


def check_common(fd, nodes):
    boundaries = FakeBoundaries()
    for position, lb in enumerate(fd.logical_blocks):
        assert lb.seq == position
        assert lb.name == f"logical_file_{position}"
        assert lb.file_name == "file"
        assert lb.hash_key == boundaries.random_within_boundaries(nodes.index(lb.host_name))


def test_lean_full_split_places_every_chunk_once():
    fd = make_fd(6)
    sch = LeanScheduler(FakeBoundaries(), {"cores": "2", "lean_input_split": "1.0"})
    sch.generate(fd, NODES)
    assert fd.n_lblock == len(NODES) * 2
    assert len(fd.logical_blocks) == fd.n_lblock
    assert fd.num_static_blocks == 6
    assert all_names(fd) == Counter(fd.blocks)
    assert sum(lb.primary_chunk_num for lb in fd.logical_blocks) == 6
    for lb in fd.logical_blocks:
        assert lb.size == sum(b.size for b in lb.physical_blocks)
        assert all(b.node == lb.host_name for b in lb.physical_blocks)
    check_common(fd, NODES)


def test_lean_zero_split_sends_each_chunk_to_all_replicas():
    fd = make_fd(6)
    sch = LeanScheduler(FakeBoundaries(), {"cores": "2", "lean_input_split": "0"})
    sch.generate(fd, NODES)
    assert fd.num_static_blocks == 0
    assert all_names(fd) == Counter({name: 3 for name in fd.blocks})
    assert all(lb.primary_chunk_num == 0 for lb in fd.logical_blocks)
    hosts_of = {}
    for lb in fd.logical_blocks:
        for b in lb.physical_blocks:
            assert b.node == lb.host_name
            hosts_of.setdefault(b.name, set()).add(b.node)
    assert all(hosts == set(NODES) for hosts in hosts_of.values())


def test_lean_half_split():
    fd = make_fd(6)
    sch = LeanScheduler(FakeBoundaries(), {"cores": "2", "lean_input_split": "0.5"})
    sch.generate(fd, NODES)
    assert fd.num_static_blocks == 3
    counts = all_names(fd)
    for i, name in enumerate(fd.blocks):
        assert counts[name] == (1 if i < 3 else 3)


def test_lean_requires_options():
    with pytest.raises(ValueError):
        LeanScheduler(FakeBoundaries(), {"lean_input_split": "1"}).generate(make_fd(3), NODES)
    with pytest.raises(ValueError):
        LeanScheduler(FakeBoundaries(), {"cores": "2"}).generate(make_fd(3), NODES)


def test_steal_shares_primaries_with_neighbours():
    fd = make_fd(6)
    sch = StealScheduler(FakeBoundaries(), {"cores": "4"})
    sch.generate(fd, NODES)
    # cores are capped by chunks per node
    assert fd.n_lblock == len(NODES) * (6 // len(NODES))
    assert fd.num_static_blocks == 6
    assert sum(lb.primary_chunk_num for lb in fd.logical_blocks) == 6
    for lb in fd.logical_blocks:
        primaries = lb.physical_blocks[: lb.primary_chunk_num]
        assert all(b.node == lb.host_name for b in primaries)
        assert lb.size == sum(b.size for b in primaries)
    assert all_names(fd) == Counter({name: 3 for name in fd.blocks})
    check_common(fd, NODES)


def test_steal_rejects_too_few_chunks():
    with pytest.raises(ValueError):
        StealScheduler(FakeBoundaries(), {"cores": "4"}).generate(make_fd(2), NODES)


def test_steal_with_no_chunks_produces_nothing():
    fd = make_fd(0)
    StealScheduler(FakeBoundaries(), {"cores": "4"}).generate(fd, NODES)
    assert fd.logical_blocks == []
    assert fd.n_lblock == 0


def test_multiwave_small_file_is_one_wave():
    nodes = ["a", "b"]
    fd = make_fd(4, nodes)
    MultiwaveScheduler(FakeBoundaries(), {"cores": "1"}).generate(fd, nodes)
    assert fd.n_lblock == 2
    assert len(fd.logical_blocks) == fd.n_lblock
    assert sum(len(lb.physical_blocks) for lb in fd.logical_blocks) == 3
    check_common(fd, nodes)


def test_multiwave_invariants():
    nodes = ["a", "b"]
    fd = make_fd(8, nodes)
    MultiwaveScheduler(FakeBoundaries(), {"cores": "2"}).generate(fd, nodes)
    assert len(fd.logical_blocks) == fd.n_lblock
    assert fd.n_lblock % (2 * len(nodes)) == 0
    assert fd.n_lblock > 2 * len(nodes)
    for lb in fd.logical_blocks:
        assert lb.size == sum(b.size for b in lb.physical_blocks)
        assert all(b.node == lb.host_name for b in lb.physical_blocks)
    check_common(fd, nodes)


def test_multiwave_fewer_chunks_than_slots():
    fd = make_fd(3)
    MultiwaveScheduler(FakeBoundaries(), {"cores": "2"}).generate(fd, NODES)
    assert fd.logical_blocks == []
    assert fd.n_lblock == 0


def test_multiwave_requires_positive_cores():
    with pytest.raises(ValueError):
        MultiwaveScheduler(FakeBoundaries(), {"cores": "0"}).generate(make_fd(6), NODES)