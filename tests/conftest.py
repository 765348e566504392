import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest


def _ensure_project_root_on_path() -> None:
    this_file = Path(__file__).resolve()
    project_root = this_file.parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


_ensure_project_root_on_path()

from typegraph.type_definitions import (  # noqa: E402
    Argument,
    EnumType,
    Field,
    InterfaceType,
    ObjectType,
    list_of,
    non_null,
)
from typegraph.type_registry import TypeRegistry  # noqa: E402


@pytest.fixture(autouse=True)
def test_env_isolation(tmp_path):
    """Point dotenv lookups at an isolated, empty .env and run each test on a scratch os.environ."""
    env_dir = tmp_path / "isolated_env"
    env_dir.mkdir()
    dotenv_path = str(env_dir / ".env")
    Path(dotenv_path).touch()

    with patch.dict(os.environ), patch("typegraph.settings.find_dotenv", return_value=dotenv_path):
        for key in [k for k in os.environ if k.startswith("TYPEGRAPH_")]:
            del os.environ[key]
        yield dotenv_path


# ============================================================================
# Star Wars schema
# ============================================================================


class Episode(Enum):
    NEWHOPE = 4
    EMPIRE = 5
    JEDI = 6


class Human:
    def __init__(self, id: str, name: str, friends: list[str], appears_in: list[Episode], home_planet: str | None):
        self.id = id
        self.name = name
        self.friends = friends
        self.appears_in = appears_in
        self.home_planet = home_planet


class Droid:
    def __init__(self, id: str, name: str, friends: list[str], appears_in: list[Episode], primary_function: str):
        self.id = id
        self.name = name
        self.friends = friends
        self.appears_in = appears_in
        self.primary_function = primary_function


ALL_EPISODES = [Episode.NEWHOPE, Episode.EMPIRE, Episode.JEDI]

LUKE = Human("1000", "Luke Skywalker", ["1002", "1003", "2000", "2001"], ALL_EPISODES, "Tatooine")
VADER = Human("1001", "Darth Vader", ["1004"], ALL_EPISODES, "Tatooine")
HAN = Human("1002", "Han Solo", ["1000", "1003", "2001"], ALL_EPISODES, None)
LEIA = Human("1003", "Leia Organa", ["1000", "1002", "2000", "2001"], ALL_EPISODES, "Alderaan")
TARKIN = Human("1004", "Wilhuff Tarkin", ["1001"], [Episode.NEWHOPE], None)
THREEPIO = Droid("2000", "C-3PO", ["1000", "1002", "1003", "2001"], ALL_EPISODES, "Protocol")
ARTOO = Droid("2001", "R2-D2", ["1000", "1002", "1003"], ALL_EPISODES, "Astromech")

HUMANS = {h.id: h for h in (LUKE, VADER, HAN, LEIA, TARKIN)}
DROIDS = {d.id: d for d in (THREEPIO, ARTOO)}


def _character(character_id: str) -> Any:
    return HUMANS.get(character_id) or DROIDS.get(character_id)


def _friends(character: Any, args: dict[str, Any], context: Any) -> list[Any]:
    return [_character(friend_id) for friend_id in character.friends]


def _hero(root: Any, args: dict[str, Any], context: Any) -> Any:
    # Luke is the hero of Episode V; R2-D2 is the hero otherwise.
    return LUKE if args.get("episode") == Episode.EMPIRE else ARTOO


def build_star_wars_registry() -> TypeRegistry:
    episode = EnumType.from_python_enum(Episode, description="One of the films in the Star Wars Trilogy")

    character_fields = {
        "id": Field(non_null("String"), description="The id of the character."),
        "name": Field("String", description="The name of the character."),
        "friends": Field(list_of("Character"), resolve=_friends),
        "appears_in": Field(list_of("Episode"), description="Which movies they appear in."),
    }
    character = InterfaceType("Character", fields=character_fields, description="A character in the Star Wars Trilogy")
    human = ObjectType(
        "Human",
        fields={**character_fields, "home_planet": Field("String")},
        interfaces=["Character"],
        is_type_of=lambda value: isinstance(value, Human),
    )
    droid = ObjectType(
        "Droid",
        fields={**character_fields, "primary_function": Field("String")},
        interfaces=["Character"],
        is_type_of=lambda value: isinstance(value, Droid),
    )
    query = ObjectType(
        "Query",
        fields={
            "hero": Field("Character", args={"episode": Argument("Episode")}, resolve=_hero),
            "human": Field(
                "Human",
                args={"id": Argument(non_null("String"))},
                resolve=lambda root, args, context: HUMANS.get(args["id"]),
            ),
            "droid": Field(
                "Droid",
                args={"id": Argument(non_null("String"))},
                resolve=lambda root, args, context: DROIDS.get(args["id"]),
            ),
        },
    )
    return TypeRegistry.build(query, types=[episode, character, human, droid])


@pytest.fixture
def star_wars_registry() -> TypeRegistry:
    return build_star_wars_registry()
