# bms_dashboard/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser

from bms_dashboard.services.legs import AcquisitionSettings, ArraySettings
from bms_dashboard.services.poller import clamp_poll_rate
from bms_dashboard.services.sanitizer import Fence, SanitizePolicy


@dataclass
class ControllerConfig:
    address: str
    sanitize: bool = True
    poll_rate_ms: int = 2000
    timeout: float | None = None


@dataclass
class ArrayConfig:
    fence_min: float
    fence_max: float
    bound_min: float | None = None
    bound_max: float | None = None
    split: int | None = None

    def settings(self, integer: bool) -> ArraySettings:
        bound = None
        if self.bound_min is not None or self.bound_max is not None:
            bound = Fence(self.bound_min, self.bound_max, inclusive=False)
        policy = SanitizePolicy(
            fence=Fence(self.fence_min, self.fence_max),
            bound=bound,
            integer=integer,
        )
        return ArraySettings(policy=policy, split=self.split)


def _voltage_defaults() -> ArrayConfig:
    return ArrayConfig(fence_min=3000, fence_max=4200, split=72)


def _temperature_defaults() -> ArrayConfig:
    return ArrayConfig(fence_min=15.0, fence_max=45.0, split=8)


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    controller: ControllerConfig
    voltage: ArrayConfig = field(default_factory=_voltage_defaults)
    temperature: ArrayConfig = field(default_factory=_temperature_defaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def acquisition_settings(self) -> AcquisitionSettings:
        return AcquisitionSettings(
            voltage=self.voltage.settings(integer=True),
            temperature=self.temperature.settings(integer=False),
        )


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        def _maybe_float(raw: str | None) -> float | None:
            if raw is None:
                return None
            raw = raw.strip()
            if not raw:
                return None
            return float(raw)

        def _maybe_int(raw: str | None) -> int | None:
            if raw is None:
                return None
            raw = raw.strip()
            if not raw:
                return None
            return int(raw)

        # --- Controller ---
        if "controller" not in p:
            raise ValueError("[controller] section missing from config")
        ctrl_sec = p["controller"]
        address = ctrl_sec.get("address", "").strip()
        if not address:
            raise ValueError("[controller] address is required")

        controller_kwargs = {"address": address}
        if "sanitize" in ctrl_sec:
            controller_kwargs["sanitize"] = _as_bool(ctrl_sec["sanitize"])
        if "poll_rate_ms" in ctrl_sec:
            controller_kwargs["poll_rate_ms"] = clamp_poll_rate(int(ctrl_sec["poll_rate_ms"]))
        if (timeout := _maybe_float(ctrl_sec.get("timeout"))) is not None:
            controller_kwargs["timeout"] = timeout
        controller = ControllerConfig(**controller_kwargs)

        # --- Cell arrays ---
        def _array(section: str, defaults: ArrayConfig, number) -> ArrayConfig:
            if section not in p:
                return defaults
            sec = p[section]
            if "fence_min" in sec:
                defaults.fence_min = number(sec["fence_min"])
            if "fence_max" in sec:
                defaults.fence_max = number(sec["fence_max"])
            if (bound_min := _maybe_float(sec.get("bound_min"))) is not None:
                defaults.bound_min = number(bound_min)
            if (bound_max := _maybe_float(sec.get("bound_max"))) is not None:
                defaults.bound_max = number(bound_max)
            if "split" in sec:
                defaults.split = _maybe_int(sec["split"])
            return defaults

        voltage_cfg = _array("voltage", _voltage_defaults(), lambda raw: int(float(raw)))
        temperature_cfg = _array("temperature", _temperature_defaults(), float)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            controller=controller,
            voltage=voltage_cfg,
            temperature=temperature_cfg,
            logging=logging_cfg,
        )
