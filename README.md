# veloxdfs

Parts for the nodes of a distributed file system: message types, their
serialization and framing, asyncio connections between nodes, message routing,
and schedulers that group a file's chunks into logical blocks.

## Installation

```
pip install veloxdfs
```

To run the tests:

```
pip install "veloxdfs[test]"
pytest
```

## Modules

- `veloxdfs.messages`: dataclasses for the messages nodes exchange. These are
  `FileInfo`, `FileUpdate`, `FileList`, `BlockInfo`, `Reply`, `FileRequest`,
  `BlockRequest`, `FileDescription`, `FileDel`, `FormatRequest`, `FileExist`,
  `MetaData`, `IOoperation` (with `IOOpType`) and `TaskOperation` (with
  `TaskOpType`). The module also holds the records `ChunkMetadata`,
  `BlockMetadata` and `LogicalBlockMetadata`. Every message derives from
  `Message`, which carries `origin` and `destination`. `Message.get_type()`
  returns the class name, and routing uses that name.
  `FileDescription.assign_from(other)` copies the file summary together with
  the block names, hash keys and sizes.
- `veloxdfs.model`: `Metadata` and `BlockMetadata`, the file and logical block
  as a client sees them.
- `veloxdfs.codec`: `to_dict` / `from_dict` convert a message into a tagged
  plain dictionary and back. `encode(message, serialization)` /
  `decode(payload, serialization)` produce and read either an XML document
  (`"xml"`) or msgpack bytes (any other value). A failure raises `CodecError`.
- `veloxdfs.framing`: `save_message` puts a 16-digit, zero-padded decimal
  length header in front of the encoded body. `load_message` decodes a body and
  `parse_header` reads a header. For blocking sockets, `send_message` sends a
  frame with `TCP_NODELAY` set, and `read_reply(sock, expected_type)` reads one
  frame and checks its type. Framing problems raise `FramingError`.
- `veloxdfs.router`: `NetObserver` is the interface. `Router` holds a routing
  table filled with `add_route(type_name, handler)`. `RouterDecorator` handles
  the types in its own table and passes the rest to the router it wraps.
  `SimpleRouter` ends a chain and logs an error for any message that nobody
  handled.
- `veloxdfs.channel`: `AsyncChannel` and `Server`, an asyncio stream pair.
  `commit` queues a message or a framed payload, `do_write` queues one and
  starts writing, and `do_read` starts a loop that hands each decoded message
  to the observer's `on_read`. When a write hits a connection reset, the
  channel reconnects. After its last write, an idle channel closes itself
  once `keep_alive` seconds pass (10 by default; `None` keeps it open).
- `veloxdfs.client_handler`: `ClientHandler(nodes, port)` sends messages to a
  node by its index in `nodes`. It reuses an open connection when one exists.
  `send_and_replicate` serializes the message once and sends it to several
  nodes.
- `veloxdfs.server_handler`: `ServerHandler(port, host=...)`. The coroutine
  `establish()` starts accepting connections. With port 0 it records the port
  that was actually bound. `close()` stops listening and closes accepted
  connections.
- `veloxdfs.nodes`: `Machine` (abstract, identified by `id`) and `Node`.
- `veloxdfs.scheduler`, `veloxdfs.scheduler_slots`,
  `veloxdfs.scheduler_python`: the logical-block schedulers, listed below.
- `veloxdfs.scheduler_factory`: `scheduler_factory(kind, boundaries, options,
  listener)` builds a scheduler by name. It raises `UnknownSchedulerError` for
  a name it does not know.
- `veloxdfs.io_monitor`: `invoke_io_reporter(enabled, script)` starts the I/O
  statistics script (`read_io_stats.sh` by default) in the background when
  `enabled` is true or the string `"true"`. It returns the process, or `None`.

## Schedulers

Each scheduler fills `file_desc.logical_blocks` and `file_desc.n_lblock` from
`blocks`, `hash_keys`, `block_size` and `block_hosts`. It is given
`boundaries`, an object with a `random_within_boundaries(node_index)` method
that supplies each logical block's hash key. Some schedulers also need a
`listener`, a `StatsListener` whose `get_io_stats()` returns one
`(io_fraction, cpus)` pair per node.

| name                    | class                 | options                      |
|-------------------------|-----------------------|------------------------------|
| `scheduler_simple`      | `SimpleScheduler`     | none                         |
| `scheduler_score_based` | `ScoreBasedScheduler` | `alpha`, `beta`; listener    |
| `scheduler_base`        | `BaseScheduler`       | none                         |
| `scheduler_vlmb`        | `VlmbScheduler`       | `alpha`; listener            |
| `scheduler_lean`        | `LeanScheduler`       | `cores`, `lean_input_split`  |
| `scheduler_steal`       | `StealScheduler`      | `cores`                      |
| `scheduler_multiwave`   | `MultiwaveScheduler`  | `cores`                      |
| `python`                | `PythonScheduler`     | `script`; listener           |

Besides the fields above, `BaseScheduler` and the slot schedulers also read
`primary_files`, `offsets`, `offsets_in_file` and `primary_sequences`.
`PythonScheduler` runs the program named by `script` with a JSON document on
stdin (see `build_input`). It reads `{"<node id>": [[chunk ids], ...]}` back
from stdout (see `apply_output`).

```python
from veloxdfs.messages import FileDescription
from veloxdfs.scheduler_factory import scheduler_factory


class Boundaries:
    def random_within_boundaries(self, index):
        return index * 100


fd = FileDescription(name="file")
fd.blocks = ["file_1", "file_2", "file_3"]
fd.hash_keys = [1, 2, 3]
fd.block_size = [10, 20, 30]
fd.block_hosts = ["0", "1", "1"]

sched = scheduler_factory("scheduler_simple", Boundaries(), {}, None)
sched.generate(fd, ["0", "1"])
print(fd.n_lblock, [len(lb.physical_blocks) for lb in fd.logical_blocks])  # 2 [1, 2]
```

## Encoding a message

```python
from veloxdfs.framing import HEADER_SIZE, load_message, parse_header, save_message
from veloxdfs.messages import FileExist

frame = save_message(FileExist(name="input.txt"), "xml")
size = parse_header(frame[:HEADER_SIZE])
message = load_message(frame[HEADER_SIZE:HEADER_SIZE + size], "xml")
assert message.name == "input.txt"
```

## Sending a message between two handlers

```python
import asyncio

from veloxdfs.client_handler import ClientHandler
from veloxdfs.messages import FileExist
from veloxdfs.router import RouterDecorator, SimpleRouter
from veloxdfs.server_handler import ServerHandler


async def main():
    received = asyncio.Queue()
    router = RouterDecorator(SimpleRouter())
    router.add_route("FileExist", lambda message, channel: received.put_nowait(message))

    server = ServerHandler(0, host="127.0.0.1")
    server.attach(router)
    await server.establish()

    client = ClientHandler(["127.0.0.1"], server.port)
    client.send(0, FileExist(name="input.txt"))
    print((await received.get()).name)
    server.close()


asyncio.run(main())
```

## What the package does not do

It has no command-line client and no node program to start, and it defines no
file-leader, block-storage or task-manager services. Those would register
handlers on a router. It reads no settings file: node lists, ports,
serialization and scheduler options are passed in by the caller. It ships
no `StatsListener` that collects real statistics, and no `boundaries`
implementation. Callers supply both.