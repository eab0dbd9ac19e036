"""Write temporary credentials into the ``aliyun`` CLI configuration."""

import json
import logging
import os

log = logging.getLogger(__name__)

ALIYUN_CONFIG_PATH = os.path.expanduser("~/.aliyun/config.json")
DEFAULT_REGION = "cn-hangzhou"


def load_aliyun_config(path):
    if not os.path.exists(path):
        return {"current": "", "profiles": [], "meta_path": ""}
    with open(path) as fh:
        return json.load(fh)


def write_aliyun_profile(credentials, profile, region=None, path=ALIYUN_CONFIG_PATH):
    """Store *credentials* as an StsToken profile in the aliyun CLI config.

    Other profiles in the file are kept. The file is created with mode 0o600.
    """
    config = load_aliyun_config(path)
    entry = {
        "name": profile,
        "mode": "StsToken",
        "access_key_id": credentials["AccessKeyId"],
        "access_key_secret": credentials["AccessKeySecret"],
        "sts_token": credentials["SecurityToken"],
        "region_id": region or DEFAULT_REGION,
        "output_format": "json",
        "language": "en",
    }

    profiles = [p for p in config.get("profiles", []) if p.get("name") != profile]
    profiles.append(entry)
    config["profiles"] = profiles
    if not config.get("current"):
        config["current"] = profile

    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as fh:
        json.dump(config, fh, indent=4)
    os.chmod(path, 0o600)
    log.debug("Wrote profile %s to %s", profile, path)
