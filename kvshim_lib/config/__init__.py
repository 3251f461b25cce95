from .config import CliConfig, load_config, load_yaml_file

__all__ = ["CliConfig", "load_config", "load_yaml_file"]
