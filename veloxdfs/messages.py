"""Message types exchanged between nodes and the metadata records they carry."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import IntEnum


@dataclass
class Message:
    """Common base of every network message: who sent it and who should get it."""

    origin: int = 0
    destination: int = 0

    def __new__(cls, *args, **kwargs):
        if cls is Message:
            raise TypeError("Message is abstract; instantiate a concrete message type")
        return super().__new__(cls)

    def get_type(self) -> str:
        """Return the type name used to route this message."""
        return type(self).__name__


@dataclass
class ChunkMetadata:
    """Location of one chunk inside a primary file."""

    name: str = ""
    primary_file: str = ""
    chunk_seq: int = 0
    size: int = 0
    offset: int = 0
    foffset: int = 0
    primary_seq: int = 0


@dataclass
class BlockMetadata:
    """Placement record of a stored block and its replicas."""

    name: str = ""
    file_name: str = ""
    seq: int = 0
    hash_key: int = 0
    size: int = 0
    type: int = 0
    replica: int = 0
    node: str = ""
    l_node: str = ""
    r_node: str = ""
    is_committed: int = 0
    chunks: list[ChunkMetadata] = field(default_factory=list)


@dataclass
class FileInfo(Message):
    """Summary of a file known to the file leader."""

    name: str = ""
    hash_key: int = 0
    size: int = 0
    num_block: int = 0
    num_primary_file: int = 0
    n_lblock: int = 0
    type: int = 0
    replica: int = 0
    reducer_output: bool = False
    job_id: int = 0
    uploading: int = 1
    is_input: bool = False
    intended_block_size: int = 0
    blocks_metadata: list[BlockMetadata] = field(default_factory=list)


@dataclass
class FileUpdate(Message):
    """Change to a file's size and block list."""

    name: str = ""
    size: int = 0
    num_block: int = 0
    num_primary_file: int = 0
    is_append: bool = False
    blocks_metadata: list[BlockMetadata] = field(default_factory=list)


@dataclass
class FileList(Message):
    """A listing of files."""

    data: list[FileInfo] = field(default_factory=list)


@dataclass
class BlockInfo(Message):
    """Description of one physical block."""

    name: str = ""
    primary_file: str = ""
    file_name: str = ""
    seq: int = 0
    hash_key: int = 0
    size: int = 0
    type: int = 0
    replica: int = 0
    primary_seq: int = 0
    offset: int = 0
    foffset: int = 0
    node: str = ""
    l_node: str = ""
    r_node: str = ""
    is_committed: int = 0
    content: str = ""


@dataclass
class LogicalBlockMetadata:
    """A logical block: a group of physical blocks scheduled on one host."""

    seq: int = 0
    name: str = ""
    file_name: str = ""
    host_name: str = ""
    size: int = 0
    hash_key: int = 0
    primary_chunk_num: int = 0
    replica_chunk_num: list[int] = field(default_factory=lambda: [0, 0])
    physical_blocks: list[BlockInfo] = field(default_factory=list)


@dataclass
class Reply(Message):
    """Generic answer carrying a status message and optional details."""

    message: str = ""
    details: str = ""


@dataclass
class FileRequest(Message):
    """Request for a file's description."""

    name: str = ""
    type: str = ""
    generate: bool = False


@dataclass
class BlockRequest(Message):
    """Request for the contents of a block, optionally only a range of it."""

    off: int = 0
    len: int = 0
    should_read_partially: bool = False
    name: str = ""
    hash_key: int = 0


@dataclass
class FileDescription(FileInfo):
    """Full description of a file: its blocks, their placement and logical blocks."""

    primary_files: list[str] = field(default_factory=list)
    blocks: list[str] = field(default_factory=list)
    hash_keys: list[int] = field(default_factory=list)
    block_size: list[int] = field(default_factory=list)
    offsets: list[int] = field(default_factory=list)
    offsets_in_file: list[int] = field(default_factory=list)
    chunk_sequences: list[int] = field(default_factory=list)
    primary_sequences: list[int] = field(default_factory=list)
    block_hosts: list[str] = field(default_factory=list)
    logical_blocks: list[LogicalBlockMetadata] = field(default_factory=list)
    num_static_blocks: int = 0

    def assign_from(self, other: FileDescription) -> FileDescription:
        """Copy the file summary plus block names, hash keys and sizes from other."""
        for f in dataclasses.fields(FileInfo):
            value = getattr(other, f.name)
            setattr(self, f.name, list(value) if isinstance(value, list) else value)
        self.blocks = list(other.blocks)
        self.hash_keys = list(other.hash_keys)
        self.block_size = list(other.block_size)
        return self


@dataclass
class FileDel(Message):
    """Request to delete a file."""

    name: str = ""


@dataclass
class FormatRequest(Message):
    """Request to format the file system."""


@dataclass
class FileExist(Message):
    """Query whether a file exists."""

    name: str = ""


@dataclass
class MetaData(Message):
    """Raw metadata content attached to a node."""

    name: str = ""
    content: str = ""
    node: str = ""


class IOOpType(IntEnum):
    """Kinds of block I/O operations."""

    BLOCK_INSERT = 0
    BLOCK_INSERT_REPLICA = 1
    BLOCK_DELETE = 2
    BLOCK_DELETE_REPLICA = 3
    BLOCK_REQUEST = 4
    BLOCK_TRANSFER = 5
    BLOCK_UPDATE = 6
    BLOCK_UPDATE_REPLICA = 7
    LOGICAL_BLOCK_REQUEST = 8
    LBLOCK_MANAGER_INIT = 9
    LBLOCK_MANAGER_READ = 10
    LBLOCK_STOP = 11
    LBLOCK_MANAGER_DESTROY = 12


@dataclass
class IOoperation(Message):
    """A block I/O operation; block is a (name, content) pair."""

    operation: IOOpType = IOOpType.BLOCK_INSERT
    option: str = ""
    pos: int = 0
    length: int = 0
    block_metadata: BlockMetadata = field(default_factory=BlockMetadata)
    block: tuple[str, str] = ("", "")


class TaskOpType(IntEnum):
    """Kinds of task operations."""

    TASK_INIT = 0
    TASK_DESTROY = 1


@dataclass
class TaskOperation(Message):
    """Task manager operation over one logical block."""

    operation: TaskOpType = TaskOpType.TASK_INIT
    job_id: str = ""
    tmg_id: int = 0
    file: str = ""
    lblock_metadata: LogicalBlockMetadata = field(default_factory=LogicalBlockMetadata)