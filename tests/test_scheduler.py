import pytest

from veloxdfs.messages import FileDescription
from veloxdfs.scheduler import (
    MIN_BLOCK_SIZE,
    BaseScheduler,
    Scheduler,
    ScoreBasedScheduler,
    SimpleScheduler,
    StatsListener,
    VlmbScheduler,
)


class FakeHistogram:
    def random_within_boundaries(self, index):
        return index * 25


class Listener1Busy(StatsListener):
    def get_io_stats(self):
        return [(0.01, 1), (0.01, 1), (0.01, 1), (0.99, 1)]


class FixedListener(StatsListener):
    def __init__(self, stats):
        self.stats = stats

    def get_io_stats(self):
        return list(self.stats)


NODES = ["0", "1", "2", "3"]
OPTS = {"alpha": "0.5", "beta": "0.5"}


def make_fd():
    sizes = [123123, 124123, 32323, 4242, 424245]
    return FileDescription(
        name="file",
        blocks=["file_1", "file_2", "file_3", "file_4", "file_5"],
        hash_keys=[123123, 124123, 32323, 4242, 424245],
        block_size=sizes,
        block_hosts=["0", "1", "2", "3", "3"],
        primary_files=["p"] * 5,
        offsets=[0] * 5,
        offsets_in_file=[0, 1, 2, 3, 4],
        primary_sequences=[0, 1, 2, 3, 4],
    )


def names(lblock):
    return [b.name for b in lblock.physical_blocks]


def test_scheduler_is_abstract():
    with pytest.raises(TypeError):
        Scheduler()


def test_simple():
    fd = make_fd()
    SimpleScheduler(FakeHistogram(), OPTS, Listener1Busy()).generate(fd, NODES)
    assert len(fd.logical_blocks) == 4
    assert [len(lb.physical_blocks) for lb in fd.logical_blocks] == [1, 1, 1, 2]
    assert fd.n_lblock == 4
    first = fd.logical_blocks[0]
    assert first.name == "logical_file_0"
    assert first.seq == 1
    assert first.host_name == "0"
    assert fd.logical_blocks[3].hash_key == 75
    assert fd.logical_blocks[3].size == 424245 + 4242


def test_score_based():
    fd = make_fd()
    ScoreBasedScheduler(FakeHistogram(), OPTS, Listener1Busy()).generate(fd, NODES)
    assert len(fd.logical_blocks) == 3
    assert len(fd.logical_blocks[0].physical_blocks) == 1
    assert len(fd.logical_blocks[1].physical_blocks) == 2
    assert len(fd.logical_blocks[2].physical_blocks) == 2
    assert [lb.host_name for lb in fd.logical_blocks] == ["1", "2", "0"]
    assert fd.n_lblock == 3


def test_score_based_avoids_busy_node():
    fd = make_fd()
    ScoreBasedScheduler(FakeHistogram(), OPTS, Listener1Busy()).generate(fd, NODES)
    for lb in fd.logical_blocks:
        for block in lb.physical_blocks:
            assert block.node == lb.host_name
            assert block.node != "3"


def test_base_primaries_and_replicas():
    fd = make_fd()
    BaseScheduler(FakeHistogram(), OPTS, Listener1Busy()).generate(fd, NODES)
    assert fd.n_lblock == 4
    assert fd.num_static_blocks == 5
    lb0 = fd.logical_blocks[0]
    assert lb0.primary_chunk_num == 1
    assert names(lb0) == ["file_1", "file_5", "file_4", "file_2"]
    assert lb0.replica_chunk_num == [2, 1]
    lb3 = fd.logical_blocks[3]
    assert lb3.primary_chunk_num == 2
    assert names(lb3)[:2] == ["file_4", "file_5"]


def test_base_sizes_count_only_primaries():
    fd = make_fd()
    BaseScheduler(FakeHistogram(), OPTS, Listener1Busy()).generate(fd, NODES)
    assert sum(lb.size for lb in fd.logical_blocks) == sum(fd.block_size)
    assert [lb.name for lb in fd.logical_blocks] == [
        "logical_file_0",
        "logical_file_1",
        "logical_file_2",
        "logical_file_3",
    ]


def test_vlmb_distribution():
    fd = make_fd()
    VlmbScheduler(FakeHistogram(), OPTS, Listener1Busy()).generate(fd, NODES)
    assert fd.n_lblock == 3
    assert [names(lb) for lb in fd.logical_blocks] == [
        ["file_1", "file_5"],
        ["file_2"],
        ["file_3", "file_4"],
    ]
    assert [lb.host_name for lb in fd.logical_blocks] == ["0", "1", "2"]
    assert sum(lb.size for lb in fd.logical_blocks) == sum(fd.block_size)


def test_vlmb_splits_large_blocks_until_cpus_used():
    fd = FileDescription(
        name="big",
        blocks=["a", "b", "c"],
        hash_keys=[1, 2, 3],
        block_size=[MIN_BLOCK_SIZE] * 3,
        block_hosts=["n"] * 3,
    )
    listener = FixedListener([(0.0, 2)])
    VlmbScheduler(FakeHistogram(), {"alpha": "0.5"}, listener).generate(fd, ["n"])
    assert [names(lb) for lb in fd.logical_blocks] == [["a", "c"], ["b"]]
    assert [lb.seq for lb in fd.logical_blocks] == [0, 1]


def test_vlmb_without_cpus_raises():
    fd = make_fd()
    listener = FixedListener([(0.0, 0)] * 4)
    with pytest.raises(ValueError):
        VlmbScheduler(FakeHistogram(), OPTS, listener).generate(fd, NODES)