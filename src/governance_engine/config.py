"""Centralized configuration management for the governance engine."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class EvaluationConfig(BaseModel):
    """Base values for application evaluation.

    The defaults reproduce the reference scoring model. Changing them shifts
    every assessment, so keep them aligned across teams comparing results.
    """
    technical_base_score: int = Field(
        3,
        ge=1,
        le=5,
        description="Starting technical health score before signal adjustments (1-5)"
    )
    business_alignment_base: float = Field(
        70.0,
        description="Starting business alignment percentage"
    )
    cost_efficiency_base: float = Field(
        60.0,
        description="Starting cost efficiency percentage"
    )
    user_satisfaction_base: float = Field(
        65.0,
        description="Starting user satisfaction percentage"
    )
    portfolio_evaluator: str = Field(
        "system",
        description="Evaluator label recorded when applications are scored as part of a portfolio"
    )


class RiskThresholdsConfig(BaseModel):
    """Thresholds for mapping technical health and cost efficiency to a risk level."""
    critical_health_average: int = Field(
        2,
        description="Average health score at or below which risk is Critical"
    )
    high_health_average: int = Field(
        3,
        description="Average health score at or below which risk is High"
    )
    medium_health_average: int = Field(
        4,
        description="Average health score at or below which risk is Medium"
    )
    critical_cost_efficiency: float = Field(
        50.0,
        description="Cost efficiency below which risk is Critical"
    )
    high_cost_efficiency: float = Field(
        70.0,
        description="Cost efficiency below which risk is High"
    )


class RecommendationConfig(BaseModel):
    """Thresholds that trigger recommendations."""
    security_score_threshold: int = Field(
        3,
        description="Emit a security recommendation when the security score is below this"
    )
    code_quality_threshold: int = Field(
        3,
        description="Emit a technical-debt recommendation when code quality is below this"
    )
    cost_efficiency_threshold: float = Field(
        70.0,
        description="Emit a cost recommendation when cost efficiency is below this"
    )


class DirectionConfig(BaseModel):
    """Action plan generation settings."""
    action_lead_days: int = Field(
        30,
        description="Days before an objective's deadline that its seed action is due"
    )
    placeholder_owner: str = Field(
        "TBD",
        description="Owner and responsible party assigned to generated plans and actions"
    )


class LoggingConfig(BaseModel):
    level: str = Field("WARNING", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    rich_console: bool = Field(True, description="Render logs with Rich on stderr")


class EngineConfig(BaseModel):
    """Complete configuration for the governance engine."""
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    risk_thresholds: RiskThresholdsConfig = Field(default_factory=RiskThresholdsConfig)
    recommendations: RecommendationConfig = Field(default_factory=RecommendationConfig)
    direction: DirectionConfig = Field(default_factory=DirectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Global config instance
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get the current configuration.

    Returns the global config, initializing with defaults if not yet loaded.
    """
    global _config
    if _config is None:
        _config = EngineConfig()
    return _config


def load_config(path: Path) -> EngineConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The loaded EngineConfig.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    _config = EngineConfig.model_validate(data or {})
    return _config


def reset_config() -> None:
    """Reset configuration to defaults."""
    global _config
    _config = EngineConfig()


def find_config_file() -> Optional[Path]:
    """Find a governance engine configuration file.

    Looks in (order of priority):
    1. GOVERNANCE_ENGINE_CONFIG environment variable
    2. ./governance-config.yaml
    3. ./governance-config.yml
    4. ~/.config/governance-engine/config.yaml
    """
    env_path = os.environ.get("GOVERNANCE_ENGINE_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in ["governance-config.yaml", "governance-config.yml"]:
        path = Path(name)
        if path.exists():
            return path

    user_config = Path.home() / ".config" / "governance-engine" / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def save_default_config(path: Path) -> None:
    """Save the default configuration to a YAML file.

    Args:
        path: Path where to save the configuration.
    """
    data = EngineConfig().model_dump()

    yaml_content = """# Governance Engine Configuration
# ===============================
#
# This file configures evaluation base scores, risk thresholds,
# recommendation triggers, action plan generation and logging.
#
# Copy this file to one of these locations:
#   - ./governance-config.yaml (current directory)
#   - ~/.config/governance-engine/config.yaml (user config)
#
# Or set the GOVERNANCE_ENGINE_CONFIG environment variable.

"""
    yaml_content += yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(yaml_content)
