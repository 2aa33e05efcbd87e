import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "openai",
    "model_name": None,  # None = provider default (see providers/*.py)
    "proposal_topic": "TOPIC_IC_OS_VERSION_ELECTION",
    "proposal_limit": 10,
    "proposal_api_base": "https://ic-api.internetcomputer.org/api/v3",
    "github_api_base": "https://api.github.com",
    "http_timeout_seconds": 30,
    "poll_interval_seconds": 10,
    "max_tokens_per_chunk": 3000,
    "max_chunks": None,  # None = audit every chunk
    "chunk_cooldown_seconds": 5,
    "max_retries": 5,
    "code_extensions": None,  # None = built-in allow-list; set to a list like [".rs", ".py"] to override
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "third_party/", "*_pb2.py")
    "store": "sqlite",
    "store_path": ".govaudit.db",
    "shard_capacity": 500,
    "max_shards": 8,
}


def load_config(config_path: str = ".govaudit.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .govaudit.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return config
