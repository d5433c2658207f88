# io/kernel_logging.py
import json
import logging
import sys
from dataclasses import asdict, is_dataclass

from traffic_sim.io.business_events import GenerationCompletedBiz, RoadsLoadedBiz
from traffic_sim.io.recorder import Recorder
from traffic_sim.sim.clock import SimClock
from traffic_sim.sim.hooks import NoopHooks, NoopRegistryHooks


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _default_json_logger(name="traffic_sim", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class _StructuredEmitter:
    def __init__(self, run_id: str, clock: SimClock | None, logger: logging.Logger):
        self.run_id, self.clock, self.log = run_id, clock, logger

    def _emit(self, level: str, msg: str, **extra):
        t = extra.get("t")
        wall = self.clock.to_wall(t) if (self.clock and t is not None) else None
        payload = {"run_id": self.run_id}
        if wall:
            payload["wall"] = wall.isoformat()
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})


class KernelLogging(_StructuredEmitter, NoopHooks):
    """Structured logs for the event loop hosting the refresh timers."""

    TIMERS = {"RefreshTick"}

    def __init__(
        self,
        run_id: str = "local",
        clock: SimClock | None = None,
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1000,
        logger: logging.Logger | None = None,
    ):
        super().__init__(run_id, clock, logger or _default_json_logger(level=level))
        self.debug, self.sample_every = debug, max(1, sample_every)
        self._processed = 0

    def _shape_event(self, ev):
        base = {"t": getattr(ev, "t", None)}
        if is_dataclass(ev):
            data = asdict(ev)
            data.pop("t", None)
            if data:
                base["data"] = data
        return type(ev).__name__, base

    def run_start(self, *, until: float | None, max_events: int | None, qsize: int | None):
        self._emit("INFO", "run_start", until=until, max_events=max_events, qsize=qsize)

    def run_end(self, *, processed: int, **extra):
        self._emit("INFO", "run_end", processed=processed, **extra)

    def schedule(self, ev, *, now: float, qsize: int):
        if self.debug and (qsize % self.sample_every) == 0:
            name, extra = self._shape_event(ev)
            self._emit("DEBUG", "schedule", event=name, now=now, qsize=qsize, **extra)

    def dispatch_start(self, ev, *, seq: int, qsize: int, handlers: int):
        self._processed += 1
        name, extra = self._shape_event(ev)
        level = "INFO" if name in self.TIMERS else ("DEBUG" if self.debug else None)
        if level:
            self._emit(level, name, **extra, seq=seq, qsize=qsize, handlers=handlers)

    def dispatch_end(self, ev, *, produced: int, qsize: int, **extra):
        if self.debug and (qsize % self.sample_every) == 0:
            self._emit("DEBUG", "dispatch_done", produced=produced, qsize=qsize, **extra)

    def error(self, ev, *, reason: str, **extra):
        name, shaped = self._shape_event(ev)
        self._emit("ERROR", "kernel_error", event=name, reason=reason, **{**shaped, **extra})


class RegistryLogging(_StructuredEmitter, NoopRegistryHooks):
    """Structured logs for the node registry; forwards analytics to a Recorder."""

    def __init__(
        self,
        run_id: str = "local",
        clock: SimClock | None = None,
        level: str = "INFO",
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        super().__init__(run_id, clock, logger or _default_json_logger(level=level))
        self.recorder = recorder

    def roads_set(self, *, t: float, roads: int, total_length_m: float):
        self._emit("INFO", "roads_set", t=t, roads=roads, total_length_m=round(total_length_m, 1))
        self.biz(
            RoadsLoadedBiz(
                run_id=self.run_id,
                t=t,
                name="RoadsLoaded",
                roads=roads,
                total_length_m=total_length_m,
            )
        )

    def generation(
        self,
        *,
        t: float,
        generation: int,
        placed: int,
        target: int,
        attempts: int,
        subscribers: int,
    ):
        level = "INFO" if placed >= target else "WARNING"
        self._emit(
            level,
            "generation",
            t=t,
            generation=generation,
            placed=placed,
            target=target,
            attempts=attempts,
            subscribers=subscribers,
        )
        self.biz(
            GenerationCompletedBiz(
                run_id=self.run_id,
                t=t,
                name="GenerationCompleted",
                generation=generation,
                placed=placed,
                target=target,
                attempts=attempts,
                subscribers=subscribers,
            )
        )

    def subscribed(self, *, subscribers: int):
        self._emit("DEBUG", "subscribed", subscribers=subscribers)

    def unsubscribed(self, *, subscribers: int):
        self._emit("DEBUG", "unsubscribed", subscribers=subscribers)

    def auto_refresh(self, *, active: bool, interval_s: float):
        self._emit("INFO", "auto_refresh", active=active, interval_s=interval_s)

    def disposed(self):
        self._emit("INFO", "registry_disposed")

    def error(self, *, reason: str, exc: BaseException | None = None, **extra):
        error = repr(exc) if exc else None
        self._emit("ERROR", "registry_error", reason=reason, error=error, **extra)

    # ------------- Business Event Reporting --------------------------

    def biz(self, ev):
        if self.recorder:
            self.recorder.emit(ev)
