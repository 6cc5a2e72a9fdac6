"""
Map-area editing state, updated through objectlens setters.

The state of a small map editor (named areas made of draggable coordinates)
is an immutable object graph. Each message produces a new state with one
leaf replaced; untouched areas and coordinates are shared with the previous
state, which keeps change detection in a UI layer down to identity checks.

Run with: python examples/map_areas.py
"""

import logging
from dataclasses import dataclass
from typing import Tuple, Union

from objectlens import create_setter, modify, with_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class DraggableCoordinate:
    coordinate: Location
    is_dragging: bool = False

    @classmethod
    def create(cls, latitude: float, longitude: float) -> 'DraggableCoordinate':
        return cls(Location(latitude, longitude))


@dataclass(frozen=True)
class Area:
    coordinates: Tuple[DraggableCoordinate, ...]
    note: str
    is_selected: bool = False
    is_defined: bool = True


@dataclass(frozen=True)
class State:
    title: str
    areas: Tuple[Area, ...]
    map_zoom_level: float
    center: Location


# =============================================================================
# MESSAGES
# =============================================================================

@dataclass(frozen=True)
class SetTitle:
    title: str


@dataclass(frozen=True)
class BeginMoveLocation:
    area_index: int
    coordinate_index: int


@dataclass(frozen=True)
class MoveLocation:
    area_index: int
    coordinate_index: int
    coordinate: Location


@dataclass(frozen=True)
class EndMoveLocation:
    area_index: int
    coordinate_index: int


@dataclass(frozen=True)
class InsertLocation:
    area_index: int
    coordinate_index: int
    coordinate: Location


@dataclass(frozen=True)
class RemoveLocation:
    area_index: int
    coordinate_index: int


@dataclass(frozen=True)
class SelectArea:
    area_index: int


@dataclass(frozen=True)
class UpdateAreaNote:
    area_index: int
    note: str


@dataclass(frozen=True)
class AddArea:
    note: str


@dataclass(frozen=True)
class ChangeMapView:
    zoom_level: float
    center: Location


Message = Union[
    SetTitle, BeginMoveLocation, MoveLocation, EndMoveLocation, InsertLocation,
    RemoveLocation, SelectArea, UpdateAreaNote, AddArea, ChangeMapView,
]

# Compiled once; reused by every update
set_title = create_setter(lambda s: s.title, root_type=State)
set_areas = create_setter(lambda s: s.areas, root_type=State)
set_zoom = create_setter(lambda s: s.map_zoom_level, root_type=State)
set_center = create_setter(lambda s: s.center, root_type=State)


def get_center(areas: Tuple[Area, ...]) -> Location:
    points = [c.coordinate for area in areas for c in area.coordinates]
    if not points:
        return Location(0.0, 0.0)
    return Location(
        sum(p.latitude for p in points) / len(points),
        sum(p.longitude for p in points) / len(points),
    )


def init() -> State:
    areas = (
        Area(tuple(DraggableCoordinate.create(lat, lon) for lat, lon in [
            (47.946812, 13.777095), (47.944375, 13.777380), (47.944338, 13.776286),
            (47.946508, 13.776049), (47.946485, 13.776685),
        ]), "Enser"),
        Area(tuple(DraggableCoordinate.create(lat, lon) for lat, lon in [
            (47.946927, 13.777057), (47.947813, 13.776992), (47.948885, 13.780077),
            (47.948237, 13.780352),
        ]), "Galler"),
    )
    return State(title="", areas=areas, map_zoom_level=15, center=get_center(areas))


def update(message: Message, state: State) -> State:
    match message:
        case SetTitle(title):
            return set_title(state, title)
        case BeginMoveLocation(a, c):
            return with_value(state, lambda s: s.areas[a].coordinates[c].is_dragging, True)
        case MoveLocation(a, c, coordinate):
            return with_value(state, lambda s: s.areas[a].coordinates[c].coordinate, coordinate)
        case EndMoveLocation(a, c):
            return with_value(state, lambda s: s.areas[a].coordinates[c].is_dragging, False)
        case InsertLocation(a, c, coordinate):
            return modify(
                state,
                lambda s: s.areas[a].coordinates,
                lambda coords: coords[:c] + (DraggableCoordinate(coordinate),) + coords[c:],
            )
        case RemoveLocation(a, c):
            return modify(state, lambda s: s.areas[a].coordinates, lambda coords: coords[:c] + coords[c + 1:])
        case SelectArea(a):
            return set_areas(state, tuple(
                with_value(area, lambda x: x.is_selected, index == a)
                for index, area in enumerate(state.areas)
            ))
        case UpdateAreaNote(a, note):
            return with_value(state, lambda s: s.areas[a].note, note)
        case AddArea(note):
            new_state = set_areas(state, state.areas + (Area((), note, is_defined=False),))
            return update(SelectArea(len(new_state.areas) - 1), new_state)
        case ChangeMapView(zoom_level, center):
            return set_center(set_zoom(state, zoom_level), center)
    raise TypeError(f"Unknown message {message!r}")


def main() -> State:
    state = init()
    for message in [
        SetTitle("Fields"),
        BeginMoveLocation(0, 1),
        MoveLocation(0, 1, Location(47.9444, 13.7775)),
        EndMoveLocation(0, 1),
        SelectArea(1),
        UpdateAreaNote(1, "Galler (north)"),
        ChangeMapView(16, Location(47.946, 13.778)),
    ]:
        previous = state
        state = update(message, state)
        shared = sum(new is old for new, old in zip(state.areas, previous.areas))
        logger.info(f"{type(message).__name__}: {shared}/{len(state.areas)} areas shared")
    return state


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    final = main()
    print(final.title, [area.note for area in final.areas], final.map_zoom_level)
