import pytest

from washdesk.config import ConfigError, load_config

VALID = """
[app]
name = "Sparkle Wash"
log_level = "debug"
secret_key = "s3cret"

[db]
host = "db.internal"
name = "washdesk"
user = "wash"
password = "pw"

[business]
currency = "KES"
invoice_due_days = 14
tax_rate = 0.16

[[auth.admins]]
email = " Admin@Example.com "
password_hash = "pbkdf2:sha256:1000$abc$def"
"""


@pytest.fixture
def write_config(tmp_path):
    def _write(text):
        path = tmp_path / "config.toml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


class TestLoadConfig:
    def test_reads_every_section(self, write_config):
        cfg = load_config(write_config(VALID))

        assert cfg.name == "Sparkle Wash"
        assert cfg.log_level == "DEBUG"
        assert cfg.db.port == 5432
        assert cfg.db.sslmode == "disable"
        assert cfg.business.currency == "KES"
        assert cfg.business.invoice_due_days == 14
        assert cfg.business.tax_rate == pytest.approx(0.16)
        assert cfg.auth.admins[0].email == "admin@example.com"

    def test_business_section_is_optional(self, write_config):
        text = VALID.split("[business]")[0]

        cfg = load_config(write_config(text))

        assert cfg.business.currency == "UGX"
        assert cfg.business.invoice_due_days == 7
        assert cfg.business.tax_rate == 0.0
        assert cfg.auth.admins == ()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_missing_key(self, write_config):
        with pytest.raises(ConfigError, match="Missing config key"):
            load_config(write_config(VALID.replace('secret_key = "s3cret"', "")))

    def test_broken_toml(self, write_config):
        with pytest.raises(ConfigError, match="TOML"):
            load_config(write_config("[app\nname = "))

    @pytest.mark.parametrize("rate", ["1.0", "-0.1", "\"lots\""])
    def test_bad_tax_rate(self, write_config, rate):
        with pytest.raises(ConfigError):
            load_config(write_config(VALID.replace("tax_rate = 0.16", f"tax_rate = {rate}")))
