# app/events.py
from dataclasses import dataclass

from traffic_sim.sim.event import BaseEvent


@dataclass(order=True)
class RefreshTick(BaseEvent):
    timer_id: int  # per-registry sequence number of the timer that scheduled it
