"""Slot-based schedulers: a fixed number of logical blocks (cores) per node."""

from __future__ import annotations

import copy
import logging
from typing import Mapping, Sequence

from .messages import BlockInfo, FileDescription, LogicalBlockMetadata
from .scheduler import Scheduler, _atof, _neighbours, _node_index, _physical_block

log = logging.getLogger(__name__)


def _required(options: Mapping[str, str], key: str) -> str:
    try:
        return options[key]
    except KeyError:
        raise ValueError(f"scheduler option {key!r} is required") from None


def _place(lblock: LogicalBlockMetadata, block: BlockInfo) -> None:
    block.node = lblock.host_name
    lblock.size += block.size
    lblock.physical_blocks.append(block)


class _SlotScheduler(Scheduler):
    """Shared helpers for schedulers that split each node into core slots."""

    def _slots(self) -> int:
        text = str(_required(self.options, "cores")).strip()
        try:
            slots = int(text)
        except ValueError as exc:
            raise ValueError(f"option 'cores' is not an integer: {text!r}") from exc
        if slots <= 0:
            raise ValueError(f"option 'cores' must be positive, got {slots}")
        return slots

    def _init_slots(
        self, fd: FileDescription, nodes: Sequence[str], slots: int
    ) -> dict[int, list[LogicalBlockMetadata]]:
        dist: dict[int, list[LogicalBlockMetadata]] = {}
        counter = 0
        for node_id, host in enumerate(nodes):
            dist[node_id] = []
            for _ in range(slots):
                dist[node_id].append(self._new_lblock(fd, counter, node_id, host))
                counter += 1
        return dist

    @staticmethod
    def _take_slot(
        dist: dict[int, list[LogicalBlockMetadata]],
        counters: list[int],
        node_id: int,
        slots: int,
    ) -> LogicalBlockMetadata:
        index = counters[node_id] % slots
        counters[node_id] += 1
        return dist[node_id][index]

    @staticmethod
    def _publish(
        fd: FileDescription, dist: dict[int, list[LogicalBlockMetadata]]
    ) -> None:
        for key in sorted(dist):
            fd.logical_blocks.extend(dist[key])
        log.info("Finished scheduling")
        fd.n_lblock = len(fd.logical_blocks)


class LeanScheduler(_SlotScheduler):
    """Balances the first part of the file over replicas; the rest goes to all replicas.

    Options: "cores" (slots per node) and "lean_input_split" (fraction of
    chunks placed statically).
    """

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        slots = self._slots()
        dist = self._init_slots(file_desc, nodes, slots)

        input_split = _atof(str(_required(self.options, "lean_input_split")))
        n_chunks = len(file_desc.blocks)
        cut = int(n_chunks * input_split)
        file_desc.num_static_blocks = cut

        counters = [0] * len(nodes)
        for i in range(n_chunks):
            replicas = _neighbours(nodes, file_desc.block_hosts[i])
            block = _physical_block(file_desc, i, full=True)
            if i < cut:
                target = min(replicas, key=lambda r: counters[r])
                lblock = self._take_slot(dist, counters, target, slots)
                _place(lblock, block)
                lblock.primary_chunk_num += 1
            else:
                for node_id in replicas:
                    lblock = self._take_slot(dist, counters, node_id, slots)
                    _place(lblock, copy.copy(block))

        self._publish(file_desc, dist)


class StealScheduler(_SlotScheduler):
    """Balances chunks over replicas, then lets each slot see its neighbours' primaries.

    Option: "cores" (upper bound on slots per node).
    """

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        if not nodes:
            raise ValueError("cannot schedule over an empty node list")
        n_chunks = len(file_desc.blocks)
        slots = min(self._slots(), n_chunks // len(nodes))
        if slots == 0 and n_chunks:
            raise ValueError(
                f"{n_chunks} chunks are too few to give every one of {len(nodes)} nodes a slot"
            )
        dist = self._init_slots(file_desc, nodes, slots)
        file_desc.num_static_blocks = n_chunks

        counters = [0] * len(nodes)
        for i in range(n_chunks):
            prev, own, nxt = _neighbours(nodes, file_desc.block_hosts[i])
            target = min((own, prev, nxt), key=lambda r: counters[r])
            lblock = self._take_slot(dist, counters, target, slots)
            _place(lblock, _physical_block(file_desc, i, full=True))
            lblock.primary_chunk_num += 1

        for key in sorted(dist):
            for slot, lblock in enumerate(dist[key]):
                which_node = _node_index(nodes, lblock.host_name)
                prev, own, nxt = _neighbours(nodes, lblock.host_name)
                for node_id in (own, prev, nxt):
                    if node_id != which_node:
                        other = dist[node_id][slot]
                        lblock.physical_blocks.extend(
                            copy.copy(b)
                            for b in other.physical_blocks[: other.primary_chunk_num]
                        )

        self._publish(file_desc, dist)


class MultiwaveScheduler(_SlotScheduler):
    """Schedules the file in waves, halving the remaining chunks at every wave.

    Option: "cores" (slots per node).
    """

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        if not nodes:
            raise ValueError("cannot schedule over an empty node list")
        slots = self._slots()
        file_desc.n_lblock = 0
        self._schedule(list(range(len(file_desc.blocks))), file_desc, nodes, slots)

    def _schedule(
        self, chunks: list[int], fd: FileDescription, nodes: Sequence[str], slots: int
    ) -> bool:
        log.debug("Chunk Size : %d", len(chunks))
        if len(chunks) < slots * len(nodes):
            return False

        half = int(len(chunks) / 2.0)
        first, second = chunks[:half], chunks[half + 1 :]
        if not self._schedule(second, fd, nodes, slots):
            first = first + second

        log.debug("One more iteration")
        self._assign(first, fd, nodes, slots)
        return True

    @staticmethod
    def _slot_replicas(nodes: Sequence[str], host: str, slots: int) -> list[int]:
        return [
            node_id * slots + k
            for node_id in _neighbours(nodes, host)
            for k in range(slots)
        ]

    def _assign(
        self, chunks: list[int], fd: FileDescription, nodes: Sequence[str], slots: int
    ) -> None:
        n_slots = slots * len(nodes)
        slots_dist: dict[int, list[int]] = {core: [] for core in range(n_slots)}
        log.debug("Chunk Num :%d", len(chunks))

        # Slots are filled by position in the wave, looked up against the file's hosts.
        for position in range(len(chunks)):
            candidates = self._slot_replicas(nodes, fd.block_hosts[position], slots)
            sizes = [len(slots_dist.setdefault(c, [])) for c in candidates]
            core = candidates[sizes.index(min(sizes))]
            slots_dist[core].append(position)

        lblock_idx = fd.n_lblock
        for core_id in sorted(slots_dist):
            node_id = core_id // slots
            host = nodes[node_id]
            lblock = self._new_lblock(fd, lblock_idx, node_id, host)
            lblock_idx += 1
            for index in slots_dist[core_id]:
                block = _physical_block(fd, index, full=True)
                block.node = host
                lblock.physical_blocks.append(block)
            lblock.size = sum(b.size for b in lblock.physical_blocks)
            fd.logical_blocks.append(lblock)
        fd.n_lblock += n_slots