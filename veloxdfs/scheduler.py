"""Schedulers grouping a file's physical blocks into logical blocks per host."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from .messages import BlockInfo, FileDescription, LogicalBlockMetadata

log = logging.getLogger(__name__)

MIN_BLOCK_SIZE = 1 << 25

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def _atof(text: str) -> float:
    """Parse the leading number of text, 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(text or "")
    return float(match.group(1)) if match else 0.0


def _node_index(nodes: Sequence[str], node: str) -> int:
    """Position of node in nodes, or len(nodes) when it is absent."""
    try:
        return list(nodes).index(node)
    except ValueError:
        return len(nodes)


def _neighbours(nodes: Sequence[str], node: str) -> tuple[int, int, int]:
    """Return (previous, self, next) node indices on the ring."""
    which = _node_index(nodes, node)
    size = len(nodes)
    prev = size - 1 if which - 1 < 0 else which - 1
    nxt = 0 if which + 1 >= size else which + 1
    return prev, which, nxt


def _physical_block(fd: FileDescription, index: int, full: bool) -> BlockInfo:
    block = BlockInfo(
        name=fd.blocks[index],
        file_name=fd.name,
        hash_key=fd.hash_keys[index],
        size=fd.block_size[index],
    )
    if full:
        block.primary_file = fd.primary_files[index]
        block.offset = fd.offsets[index]
        block.foffset = fd.offsets_in_file[index]
        block.primary_seq = fd.primary_sequences[index]
        block.seq = index
    return block


class StatsListener(ABC):
    """Source of per-node (io load, cpu count) statistics."""

    @abstractmethod
    def get_io_stats(self) -> list[tuple[float, int]]:
        """Return one (io fraction 0..1, free cpus) pair per node."""


class Scheduler(ABC):
    """Turns a file description's physical blocks into logical blocks."""

    def __init__(
        self,
        boundaries: Any = None,
        options: Mapping[str, str] | None = None,
        listener: StatsListener | None = None,
    ) -> None:
        self.boundaries = boundaries
        self.options: dict[str, str] = dict(options or {})
        self.listener = listener

    def _new_lblock(
        self, fd: FileDescription, seq: int, node_id: int, host: str
    ) -> LogicalBlockMetadata:
        return LogicalBlockMetadata(
            seq=seq,
            name=f"logical_{fd.name}_{seq}",
            file_name=fd.name,
            hash_key=self.boundaries.random_within_boundaries(node_id),
            host_name=host,
        )

    @abstractmethod
    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        """Fill file_desc.logical_blocks and n_lblock for the given nodes."""


class SimpleScheduler(Scheduler):
    """One logical block per host holding the blocks stored on it."""

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        hosts = sorted(set(file_desc.block_hosts))
        for counter, host in enumerate(hosts):
            which_node = _node_index(nodes, host)
            metadata = LogicalBlockMetadata(
                name=f"logical_{file_desc.name}_{counter}",
                file_name=file_desc.name,
                seq=counter + 1,
                hash_key=self.boundaries.random_within_boundaries(which_node),
                host_name=host,
            )
            for j, block_host in enumerate(file_desc.block_hosts):
                if block_host == host:
                    block = _physical_block(file_desc, j, full=False)
                    block.node = host
                    metadata.physical_blocks.append(block)
            metadata.size = sum(b.size for b in metadata.physical_blocks)
            file_desc.n_lblock = len(hosts)
            file_desc.logical_blocks.append(metadata)


class ScoreBasedScheduler(Scheduler):
    """Places each block on the least I/O-loaded of its replica holders."""

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        alpha = _atof(self.options.get("alpha", ""))
        beta = _atof(self.options.get("beta", ""))
        io_vec = self.listener.get_io_stats()

        counter = 0
        l_blocks = file_desc.logical_blocks
        for i, block_host in enumerate(file_desc.blocks and file_desc.block_hosts[: len(file_desc.blocks)]):
            max_score = 0.0
            host = ""
            replicas = _neighbours(nodes, block_host)
            log.debug("replicas %s", replicas)
            for server_id in replicas:
                score = alpha * (1.0 - io_vec[server_id][0]) + beta * 0.0
                if score >= max_score:
                    max_score = score
                    host = nodes[server_id]

            lblock = next((lb for lb in l_blocks if lb.host_name == host), None)
            if lblock is None:
                lblock = self._new_lblock(
                    file_desc, counter, _node_index(nodes, host), host
                )
                counter += 1
                l_blocks.append(lblock)

            block = _physical_block(file_desc, i, full=False)
            block.node = host
            lblock.size += block.size
            lblock.physical_blocks.append(block)
        file_desc.n_lblock = len(l_blocks)


class BaseScheduler(Scheduler):
    """One logical block per node with its primaries plus its neighbours' primaries."""

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        lblocks_dist: dict[int, LogicalBlockMetadata] = {
            i: self._new_lblock(file_desc, i, i, host) for i, host in enumerate(nodes)
        }
        n_chunks = len(file_desc.blocks)
        file_desc.num_static_blocks = n_chunks

        for i in range(n_chunks):
            _, target, _ = _neighbours(nodes, file_desc.block_hosts[i])
            block = _physical_block(file_desc, i, full=True)
            lblock = lblocks_dist.setdefault(target, LogicalBlockMetadata())
            block.node = lblock.host_name
            lblock.size += block.size
            lblock.primary_chunk_num += 1
            lblock.physical_blocks.append(block)

        size = len(nodes)
        for which_node in sorted(lblocks_dist):
            lblock = lblocks_dist[which_node]
            prev, own, nxt = _neighbours(nodes, lblock.host_name)
            for node_id in (own, prev, nxt):
                other = lblocks_dist.setdefault(node_id, LogicalBlockMetadata())
                idx = 0 if which_node == (node_id + 1) % size else 1
                lblock.replica_chunk_num[idx] = other.primary_chunk_num
                if node_id != which_node:
                    primaries = other.physical_blocks[: other.primary_chunk_num]
                    lblock.physical_blocks.extend(reversed(primaries))

        file_desc.logical_blocks.extend(lblocks_dist[k] for k in sorted(lblocks_dist))
        log.info("Finished scheduling")
        file_desc.n_lblock = len(file_desc.logical_blocks)


class VlmbScheduler(Scheduler):
    """Variable-length multiple-block scheduler driven by I/O, CPU and usage scores."""

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        alpha = _atof(self.options.get("alpha", ""))
        stats = self.listener.get_io_stats()
        usage = [0.0] * len(nodes)
        lblocks_dist: dict[int, list[LogicalBlockMetadata]] = {}
        n_blocks = len(file_desc.blocks)

        def score(node_id: int) -> float:
            w = alpha / 2.0
            io, cpus = stats[node_id]
            cpu_percentage = 1.0 - cpus / 8.0
            return (
                1.0
                - (w * io + w * cpu_percentage + (1.0 - alpha) * usage[node_id])
                - float(cpus == 0)
            )

        counter = 0
        for i in range(n_blocks):
            replicas = _neighbours(nodes, file_desc.block_hosts[i])
            scores = [score(r) for r in replicas]
            chosen = replicas[scores.index(max(scores))]

            node_lblocks = lblocks_dist.setdefault(chosen, [])
            current_cpus = stats[chosen][1]
            if len(node_lblocks) < current_cpus and current_cpus != 0:
                if not node_lblocks or node_lblocks[-1].size >= MIN_BLOCK_SIZE:
                    lblock = self._new_lblock(file_desc, counter, chosen, nodes[chosen])
                    counter += 1
                    node_lblocks.append(lblock)
                else:
                    lblock = node_lblocks[-1]
            else:
                if not node_lblocks:
                    raise ValueError(
                        f"node {nodes[chosen]!r} has no free cpus and no logical block"
                    )
                lblock = min(node_lblocks, key=lambda lb: lb.size)

            block = _physical_block(file_desc, i, full=False)
            block.seq = i
            block.node = nodes[chosen]
            lblock.size += block.size
            lblock.physical_blocks.append(block)
            usage[chosen] += 1.0 / n_blocks

        for key in sorted(lblocks_dist):
            file_desc.logical_blocks.extend(lblocks_dist[key])
        for i, us in enumerate(usage):
            log.info("USAGE %d : %f", i, us)
        file_desc.n_lblock = len(file_desc.logical_blocks)