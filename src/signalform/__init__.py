"""signalform: SignalFx resources (charts, detectors, dashboards) managed as declared state."""

__version__ = "0.3.0"
