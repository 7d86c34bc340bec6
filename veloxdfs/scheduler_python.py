"""Scheduler that delegates block grouping to an external script over JSON."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Sequence

from .messages import FileDescription
from .scheduler import Scheduler, _node_index, _physical_block

log = logging.getLogger(__name__)

DEFAULT_SCRIPT = "logical_blocks_scheduler.py"
CHUNKS_PER_BLOCK = 10


class PythonScheduler(Scheduler):
    """Runs the script named by the "script" option to group chunks.

    The script reads a JSON description of nodes, I/O loads and chunk
    locations on stdin and writes {"<node id>": [[chunk ids], ...]} on stdout.
    """

    def build_input(self, file_desc: FileDescription, nodes: Sequence[str]) -> str:
        """Return the JSON document handed to the script."""
        io_vec = self.listener.get_io_stats()
        log.info("GOT IO STATS")

        chunks: dict[str, list[str]] = {}
        for i, host in enumerate(file_desc.block_hosts[: len(file_desc.blocks)]):
            chunks.setdefault(str(_node_index(nodes, host)), []).append(str(i))

        document: dict[str, object] = {
            "chunksPerBlock": str(CHUNKS_PER_BLOCK),
            "nodes": [str(_node_index(nodes, node)) for node in nodes],
            "io": [f"{io:f}" for io, _ in io_vec],
        }
        if chunks:
            document["chunks"] = {key: chunks[key] for key in sorted(chunks)}
        return json.dumps(document, indent=4) + "\n"

    def apply_output(
        self, file_desc: FileDescription, nodes: Sequence[str], output: str
    ) -> None:
        """Add the logical blocks described by the script's output to file_desc."""
        try:
            document = json.loads(output)
        except json.JSONDecodeError as exc:
            raise ValueError(f"scheduler output is not JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise ValueError("scheduler output must be a JSON object")

        seq = 0
        file_desc.n_lblock = 0
        for host_key, sblocks in document.items():
            try:
                host = nodes[int(host_key)]
            except (ValueError, IndexError) as exc:
                raise ValueError(f"bad node id in scheduler output: {host_key!r}") from exc
            if not isinstance(sblocks, list):
                raise ValueError(f"blocks of node {host_key} must be a list")
            for sblock in sblocks:
                if not isinstance(sblock, list):
                    raise ValueError(f"block of node {host_key} must be a list")
                self._add_block(file_desc, nodes, [int(c) for c in sblock], host, seq)
                seq += 1
                file_desc.n_lblock += 1

    def _add_block(
        self,
        fd: FileDescription,
        nodes: Sequence[str],
        chunk_ids: list[int],
        host: str,
        seq: int,
    ) -> None:
        lblock = self._new_lblock(fd, seq, _node_index(nodes, host), host)
        for chunk_id in chunk_ids:
            block = _physical_block(fd, chunk_id, full=False)
            block.node = host
            lblock.size += block.size
            lblock.physical_blocks.append(block)
        fd.logical_blocks.append(lblock)

    def generate(self, file_desc: FileDescription, nodes: Sequence[str]) -> None:
        payload = self.build_input(file_desc, nodes)
        log.info("%s", payload)
        script = self.options.get("script", DEFAULT_SCRIPT)
        result = subprocess.run(
            [script], input=payload, capture_output=True, text=True, check=False
        )
        if not result.stdout.strip():
            raise RuntimeError(f"scheduler script {script!r} produced no output")
        log.info("BEFORE PARSING")
        self.apply_output(file_desc, nodes, result.stdout)