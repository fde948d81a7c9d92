from expedition.discovery import enrol_exploration_guild, explore_once, survey_once
from expedition.generation import create_world, ensure_generated
from expedition.luck import build_luck_summary
from expedition.models import ExploreOutcome, Path, SurveyOutcome, World
from expedition.pathfinding import far_travel, find_path, travel
from expedition.preview import preview_explore, preview_survey

__all__ = [
    "ExploreOutcome",
    "Path",
    "SurveyOutcome",
    "World",
    "build_luck_summary",
    "create_world",
    "enrol_exploration_guild",
    "ensure_generated",
    "explore_once",
    "far_travel",
    "find_path",
    "preview_explore",
    "preview_survey",
    "survey_once",
    "travel",
]
