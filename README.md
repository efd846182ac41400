# ellyn

Runtime support for collecting call graphs and block coverage from an
instrumented program. Instrumented code calls into an `Agent`, which keeps a
per-thread context, pushes and pops method ids on a stack that counts
re-entry, marks the basic blocks it runs through and hands each finished call
graph to a `Collector`. Metadata about packages, files, methods and blocks is
stored as gzip-compressed CSV and loaded back at start-up.

The package has no third-party dependencies.

## What is inside

- `ellyn.meta` — `Pos`, `Package`, `File`, `VarDef`, `VarDefList`, `Method`,
  `Block` and `MetaData`, with the CSV row encoding used on disk
  (`encode_csv_rows`, `parse_pos`, `decode_var_def`). `MetaData.load(dir)`
  reads `packages.dat`, `files.dat`, `methods.dat` and `blocks.dat` from a
  directory; missing files count as empty.
- `ellyn.config` — `Configuration` (`no_args`, `no_demo`, `sampling_rate`)
  with `to_json` / `from_json`, and `load_config(dir)`, which reads
  `config.json`. A missing, empty or invalid file gives a sampling rate of 0,
  so nothing is collected.
- `ellyn.sampling` — `RandomSampling`, an xorshift-based sampler.
- `ellyn.graph` — `Graph`, `Node`, `GraphGroup`, and the edge helpers
  `to_edge` / `split_edge` (high 32 bits: caller, low 32 bits: callee).
- `ellyn.params` — `encode_vars`, which JSON-encodes collected arguments and
  results, and the `NOT_COLLECTED` placeholder.
- `ellyn.context` — `EllynCtx` and the per-thread helpers `get_ellyn_ctx`,
  `set_ellyn_ctx`, `clear_ellyn_ctx`.
- `ellyn.agent` — `Agent` (`get_ctx`, `init_ctx`, `push`, `pop`, `mark`),
  `Collector` and `init_agent`.
- `ellyn.api` — the public façade: the `AGENT` proxy (`AgentProxy`), `init`,
  `AgentApi`, and the result types `ApiGraph`, `ApiNode`, `ApiPos`.
- `ellyn.mock` — `MockRule` and `Monkey`, which match calls by argument value
  and build substitute integer return values.
- `ellyn.server` — `DemoService`, which turns collected graphs into traffic
  lists, node details, source trees and coverage figures, and can serve them
  over HTTP (`serve`, port 19898 by default, opening a browser on start).
- `ellyn.goutils` — helpers that run commands and query the Go toolchain
  (`exec_command`, `all_packages`, `get_mod_file`, `is_auto_gen_content`, …).
- `ellyn.osutils` and `ellyn.jsonutils` — file, gzip and JSON helpers.
- Building blocks: `BitMap`, `IntMapWrap`, `ConcurrentMap`, `LinkedQueue`,
  `LinkedList`, `LRUCache`, `RingBuffer`, `SourceTree`, the stacks in
  `ellyn.stacks` (`SimpleStack`, `CompressedStack`, `Uint32Stack`),
  `GuidGenerator`, `RoutineLocal`, `RoutinePool`, the clock helpers in
  `ellyn.ctime`, and an asynchronous rotating logger in `ellyn.asynclog`.

## Examples

Edges between methods are packed into one integer:

```python
from ellyn.graph import to_edge, split_edge

edge = to_edge(3, 7)
assert split_edge(edge) == (3, 7)
```

The stack counts re-entry into the method on top instead of adding a new
element, which is how recursion is detected:

```python
from ellyn.stacks import Uint32Stack

stack = Uint32Stack()
assert stack.push(1) is True     # new element
assert stack.push(1) is False    # same method re-entered
stack.push(2)
```

A fixed-capacity bitmap:

```python
from ellyn.bitmap import BitMap

flags = BitMap(10)
flags.set(1)
flags.set(2)
assert flags.get(1) and len(flags) == 2
```

Sampling at one request in a hundred, with a fixed seed:

```python
from ellyn.sampling import RandomSampling

sampler = RandomSampling(0.01, 12345)
hits = sum(sampler.hit() for _ in range(100_000))
```

Recording one call by hand, as instrumented code would:

```python
from ellyn.agent import Agent
from ellyn.config import Configuration
from ellyn.meta import MetaData, Method

meta = MetaData(methods=[Method(id=0, full_name="main")])
agent = Agent(meta, Configuration())

ctx, collect, cleaner = agent.get_ctx()
agent.push(ctx, None, 0, [1, "a"])
agent.pop(ctx, ["ok"])

agent.collector.drain()
assert agent.collector.graph_count() == 1
```

Loading metadata and configuration from a directory that holds the `*.dat`
files and `config.json`, and starting the agent with a background collector:

```python
from ellyn.agent import init_agent

agent = init_agent("path/to/meta")
```

## What it does not do

The package is the runtime side only. It does not read or rewrite program
source to insert the `push` / `pop` / `mark` calls, does not produce the
metadata files, and has no command-line tool. Something else must write the
`*.dat` files, `config.json` and the saved sources that `DemoService` reads
from `sources/`. The front-end pages that `DemoService.serve` hands out from
`page/` are not included either.

## Tests

The test suite uses pytest and is installed with the `test` extra.