from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from loguru import logger

from .errors import DegenerateClipError, GraphError
from .types import MIN_REPEAT_COUNT

# Engine input streams such as 0:v or 1:a are sources, not produced labels
_STREAM_SPECIFIER = re.compile(r"^\d+:[vas](:\d+)?$")


def _labels(names: Sequence[str]) -> str:
    return "".join(f"[{n}]" for n in names)


@dataclass(frozen=True)
class FilterStatement:
    """One ``[in]filter,filter[out]`` chain of an FFmpeg filter graph."""

    inputs: Tuple[str, ...]
    filters: Tuple[str, ...]
    outputs: Tuple[str, ...]

    def render(self) -> str:
        return f"{_labels(self.inputs)}{','.join(self.filters)}{_labels(self.outputs)}"


@dataclass
class FilterGraph:
    """Ordered filter statements ending in a single terminal label.

    Statements are kept typed until the engine boundary so the labelling
    rules can be checked before anything is handed to ffmpeg.
    """

    statements: List[FilterStatement] = field(default_factory=list)
    output: str = "output"

    def add(self, inputs: Sequence[str], filters: Sequence[str], outputs: Sequence[str]) -> "FilterGraph":
        self.statements.append(FilterStatement(tuple(inputs), tuple(filters), tuple(outputs)))
        return self

    def validate(self) -> None:
        """Raise GraphError unless the graph is a well-formed DAG in topological order."""
        if not self.statements:
            raise GraphError("Filter graph is empty")

        produced: Dict[str, int] = {}
        consumed: Dict[str, int] = {}
        for index, stmt in enumerate(self.statements):
            if not stmt.filters:
                raise GraphError(f"Statement {index} has no filters")
            for label in stmt.inputs:
                if _STREAM_SPECIFIER.match(label):
                    continue
                if label not in produced:
                    raise GraphError(f"Statement {index} reads [{label}] before it is produced")
                if label in consumed:
                    raise GraphError(f"[{label}] is consumed by statements {consumed[label]} and {index}")
                consumed[label] = index
            for label in stmt.outputs:
                if label in produced:
                    raise GraphError(f"[{label}] is produced by statements {produced[label]} and {index}")
                produced[label] = index

        last = self.statements[-1]
        if last.outputs != (self.output,):
            raise GraphError(
                f"Final statement must produce only [{self.output}], got {_labels(last.outputs) or 'nothing'}"
            )
        if self.output in consumed:
            raise GraphError(f"Terminal label [{self.output}] is consumed inside the graph")

    def concat_input_count(self) -> int:
        """Number of segments fed into the terminal statement."""
        return len(self.statements[-1].inputs) if self.statements else 0

    def serialize(self) -> str:
        """Text for ``-filter_complex``."""
        self.validate()
        return ";".join(stmt.render() for stmt in self.statements)

    @property
    def map_label(self) -> str:
        """Argument for ``-map``."""
        return f"[{self.output}]"


def _trim(start: int, end: int) -> Tuple[str, str]:
    return (f"trim=start={start}:end={end}", "setpts=PTS-STARTPTS")


def build_crossfade_graph(
    count: int,
    transition_seconds: int,
    clip_length: int,
    pix_fmt: str = "yuva420p",
    verbose: bool = False,
) -> FilterGraph:
    """Build the filter graph for a loop of ``count`` copies with cross-faded joins.

    The clip is cut into a head ``clip1`` [0, L-t), a loop body ``clip2``
    [t, L-t) and a tail ``clip3`` [L-t, L). The last ``t`` seconds are faded
    out over the first ``t`` seconds faded in to make one ``crossfade``
    segment. Crossfade and body are split ``count - 1`` ways and interleaved:

        clip1, cf1, cl1, ..., cf{n-1}, cl{n-1}, clip3

    which is ``2 * count`` segments for the final concat.
    """
    if clip_length <= transition_seconds:
        raise DegenerateClipError(
            f"Transition duration ({transition_seconds}s) must be less than video length ({clip_length}s)"
        )
    if count < MIN_REPEAT_COUNT:
        raise GraphError(f"Cross-fade loop needs at least {MIN_REPEAT_COUNT} copies, got {count}")
    if transition_seconds < 0:
        raise GraphError(f"Transition duration cannot be negative, got {transition_seconds}")

    tail = clip_length - transition_seconds
    copies = count - 1
    graph = FilterGraph(output="output")

    # e.g. length = 15, t = 5
    graph.add(["0:v"], _trim(0, tail), ["clip1"])                             # 0 - 10
    graph.add(["0:v"], _trim(transition_seconds, tail), ["clip2"])            # 5 - 10
    graph.add(["0:v"], _trim(tail, clip_length), ["clip3"])                   # 10 - 15
    graph.add(["0:v"], _trim(tail, clip_length), ["fadeoutsrc"])              # 10 - 15
    graph.add(["0:v"], _trim(0, transition_seconds), ["fadeinsrc"])           # 0 - 5

    graph.add(["fadeinsrc"],
              [f"format=pix_fmts={pix_fmt}", f"fade=t=in:st=0:d={transition_seconds}:alpha=1"],
              ["fadein"])
    graph.add(["fadeoutsrc"],
              [f"format=pix_fmts={pix_fmt}", f"fade=t=out:st=0:d={transition_seconds}:alpha=1"],
              ["fadeout"])

    graph.add(["fadein"], ["fifo"], ["fadeinfifo"])
    graph.add(["fadeout"], ["fifo"], ["fadeoutfifo"])
    graph.add(["fadeoutfifo", "fadeinfifo"], ["overlay"], ["crossfade"])

    cf = [f"cf{i}" for i in range(1, count)]
    cl = [f"cl{i}" for i in range(1, count)]
    graph.add(["crossfade"], [f"split={copies}"], cf)
    graph.add(["clip2"], [f"split={copies}"], cl)

    order = ["clip1"]
    for fade_label, body_label in zip(cf, cl):
        order.extend([fade_label, body_label])
    order.append("clip3")
    # Final number of clips to concatenate is twice the count
    graph.add(order, [f"concat=n={count * 2}:v=1"], [graph.output])

    graph.validate()

    if verbose:
        logger.info(f"filter_complex is\n{graph.serialize()}")

    return graph
