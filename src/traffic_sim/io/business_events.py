# traffic_sim/io/business_events.py

from dataclasses import dataclass


# Base type for analytics events (not scheduled in the kernel!)
@dataclass
class BizEvent:
    run_id: str
    t: float  # simulation time
    name: str  # stable event name


@dataclass
class RoadsLoadedBiz(BizEvent):
    roads: int
    total_length_m: float


@dataclass
class GenerationCompletedBiz(BizEvent):
    generation: int
    placed: int
    target: int
    attempts: int
    subscribers: int
