"""Domain monitors, decision routing and scheduling."""
from monitor.control import MasterControl
from monitor.generators import TelemetryGenerator
from monitor.monitor import DomainMonitor
from monitor.router import DecisionRouter
from monitor.scheduler import MonitorScheduler
