"""Static classification tables used by the mapping engine.

The tables are plain module constants bundled into an immutable
:class:`MappingTables` value. Mappers receive the bundle at construction time
instead of reading module state, so tests and config overrides can supply
alternate tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

# Flat agent keys -> canonical dotted metric paths
ROOT_METRICS: Mapping[str, str] = MappingProxyType(
    {
        "agentVersion": "host.agent_version",
        "os": "host.os",
        "python": "host.python_version",
        "uuid": "host.uuid",
        "system.load.1": "system.load.1",
        "system.load.5": "system.load.5",
        "system.load.15": "system.load.15",
        "system.load.norm.1": "system.load.norm.1",
        "system.load.norm.5": "system.load.norm.5",
        "system.load.norm.15": "system.load.norm.15",
        "cpuIdle": "system.cpu.idle",
        "cpuUser": "system.cpu.user",
        "cpuWait": "system.cpu.iowait",
        "cpuSystem": "system.cpu.system",
        "cpuStolen": "system.cpu.stolen",
        "memBuffers": "system.mem.buffered",
        "memPhysPctUsable": "system.mem.pct_usable",
        "memShared": "system.mem.shared",
        "memPhysTotal": "system.mem.total",
        "memPhysUsable": "system.mem.usable",
        "memCached": "system.mem.cached",
        "memPhysUsed": "system.mem.used",
        "memPhysFree": "system.mem.free",
        "memSwapFree": "system.swap.free",
        "memSwapTotal": "system.swap.total",
        "memSwapUsed": "system.swap.used",
        "memSwapPctFree": "system.swap.pct_free",
    }
)

# Positional layout of one `ps` row as sent by the agent
PROCESS_COLUMNS: Tuple[str, ...] = (
    "user",
    "pid",
    "pct_cpu",
    "pct_mem",
    "vsz",
    "rss",
    "tty",
    "stat",
    "started",
    "running_time",
    "command",
)

# Positional layout of one `df` row (disk usage and inodes)
DISK_COLUMNS: Tuple[str, ...] = (
    "device",
    "total",
    "used",
    "free",
    "in_use",
    "mount",
)

# Canonical io column -> raw `iostat -x` field name
IO_METRICS: Mapping[str, str] = MappingProxyType(
    {
        "util": "%util",
        "avg_q_sz": "avgqu-sz",
        "avg_rq_sz": "avgrq-sz",
        "await": "await",
        "r_s": "r/s",
        "r_await": "r_await",
        "rkb_s": "rkB/s",
        "rrqm_s": "rrqm/s",
        "svctm": "svctm",
        "w_s": "w/s",
        "w_await": "w_await",
        "wkb_s": "wkB/s",
        "wrqm_s": "wrqm/s",
    }
)


@dataclass(frozen=True)
class MappingTables:
    """Immutable bundle of every table the mappers consult.

    Attributes
    ----------
    root_metrics: Mapping[str, str]
        Flat document key -> canonical dotted path.
    io_metrics: Mapping[str, str]
        Canonical io column -> raw iostat field name. Column order follows
        insertion order.
    process_columns: Tuple[str, ...]
        Positional names of a process tuple.
    disk_columns: Tuple[str, ...]
        Positional names of a disk/inode tuple.
    """

    root_metrics: Mapping[str, str] = field(default_factory=lambda: ROOT_METRICS)
    io_metrics: Mapping[str, str] = field(default_factory=lambda: IO_METRICS)
    process_columns: Tuple[str, ...] = PROCESS_COLUMNS
    disk_columns: Tuple[str, ...] = DISK_COLUMNS

    def with_overrides(
        self,
        root_metrics: Optional[Mapping[str, str]] = None,
        io_metrics: Optional[Mapping[str, str]] = None,
    ) -> "MappingTables":
        """Return a copy with extra entries merged over the current tables."""
        root = dict(self.root_metrics)
        root.update(root_metrics or {})
        io = dict(self.io_metrics)
        io.update(io_metrics or {})
        return MappingTables(
            root_metrics=MappingProxyType(root),
            io_metrics=MappingProxyType(io),
            process_columns=self.process_columns,
            disk_columns=self.disk_columns,
        )


DEFAULT_TABLES = MappingTables()
