"""create-chronicals-app -- scaffold a new Chronicals app from an example template.

Key classes:
    Pipeline             - Runs the stages and maps outcomes to an exit code
    ConfigResolver       - Flags + interactive answers -> AppConfig
    TemplateFetcher      - Downloads and extracts the example template
    SecretsWriter        - Validates the key and writes ``.env``
    DependencyInstaller  - npm / yarn detection and install
    VcsInitializer       - git init and initial commit
"""

from .config import AppConfig, PartialConfig, Settings, TemplateDescriptor
from .env_file import InvalidKeyError, SecretsWriter
from .fetcher import FetchError, TemplateFetcher
from .installer import DependencyInstaller, detect_package_manager, start_commands
from .pipeline import Pipeline, main
from .resolver import ConfigResolver, ResolutionError
from .results import RunState, Stage, StageResult
from .vcs import CommandError, VcsInitializer

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "AppConfig",
    "PartialConfig",
    "Settings",
    "TemplateDescriptor",
    "ConfigResolver",
    "ResolutionError",
    # Stages
    "TemplateFetcher",
    "FetchError",
    "SecretsWriter",
    "InvalidKeyError",
    "DependencyInstaller",
    "detect_package_manager",
    "start_commands",
    "VcsInitializer",
    "CommandError",
    # Orchestration
    "Pipeline",
    "RunState",
    "Stage",
    "StageResult",
    "main",
]
