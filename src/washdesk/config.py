from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .auth import AdminAccount


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DbConfig:
    host: str
    port: int
    name: str
    user: str
    password: str
    sslmode: str = "disable"

    def connect_kwargs(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.name,
            "user": self.user,
            "password": self.password,
            "sslmode": self.sslmode,
        }


@dataclass(frozen=True)
class BusinessConfig:
    currency: str = "UGX"
    invoice_due_days: int = 7
    tax_rate: float = 0.0


@dataclass(frozen=True)
class AuthConfig:
    admins: tuple[AdminAccount, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AppConfig:
    name: str
    log_level: str
    secret_key: str
    db: DbConfig
    business: BusinessConfig
    auth: AuthConfig


def _db_section(db: dict) -> DbConfig:
    return DbConfig(
        host=str(db["host"]),
        port=int(db.get("port", 5432)),
        name=str(db["name"]),
        user=str(db["user"]),
        password=str(db["password"]),
        sslmode=str(db.get("sslmode", "disable")),
    )


def _business_section(business: dict) -> BusinessConfig:
    tax_rate = float(business.get("tax_rate", 0.0))
    if not 0 <= tax_rate < 1:
        raise ConfigError(f"business.tax_rate must be a fraction in [0, 1), got {tax_rate}")
    return BusinessConfig(
        currency=str(business.get("currency", "UGX")),
        invoice_due_days=int(business.get("invoice_due_days", 7)),
        tax_rate=tax_rate,
    )


def _auth_section(auth: dict) -> AuthConfig:
    admins = [
        AdminAccount(email=str(entry["email"]).strip().lower(), password_hash=str(entry["password_hash"]))
        for entry in auth.get("admins", [])
    ]
    return AuthConfig(admins=tuple(admins))


def load_config(path: str | Path) -> AppConfig:
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"Config file not found at {p.resolve()} (copy config.example.toml to start)")

    try:
        with p.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{p.name} is not valid TOML: {e}") from e

    try:
        app = data["app"]
        return AppConfig(
            name=str(app.get("name", "WashDesk")),
            log_level=str(app.get("log_level", "INFO")).upper(),
            secret_key=str(app["secret_key"]),
            db=_db_section(data["db"]),
            business=_business_section(data.get("business", {})),
            auth=_auth_section(data.get("auth", {})),
        )
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e.args[0]}") from e
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in {p.name}: {e}") from e


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
