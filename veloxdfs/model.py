"""Client-side views of file and block metadata."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BlockMetadata:
    """A logical block as seen by a client; its chunks are physical blocks."""

    name: str = ""
    size: int = 0
    host: str = ""
    index: int = 0
    primary_chunk_num: int = 0
    file_name: str = ""
    primary_file: str = ""
    offset: int = 0
    foffset: int = 0
    chunk_seq: int = 0
    primary_seq: int = 0
    chunks: list[BlockMetadata] = field(default_factory=list)


@dataclass
class Metadata:
    """A file as seen by a client."""

    name: str = ""
    hash_key: int = 0
    size: int = 0
    num_block: int = 0
    num_chunks: int = 0
    num_static_blocks: int = 0
    type: int = 0
    replica: int = 0
    has_block_data: bool = True
    lbm_id: int = 0
    blocks: list[str] = field(default_factory=list)
    hash_keys: list[int] = field(default_factory=list)
    block_size: list[int] = field(default_factory=list)
    block_data: list[BlockMetadata] = field(default_factory=list)