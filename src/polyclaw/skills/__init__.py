"""Skill provisioning for the gateway container."""

from ._setup import SkillSetupResult, link_skill_binaries, setup_skills

__all__ = [
    "SkillSetupResult",
    "link_skill_binaries",
    "setup_skills",
]
