"""Tests for URL parameter encoding of filter state."""

from __future__ import annotations

from datetime import date

import pytest

from stash_player.filtering.state import FilterState, FilterStore
from stash_player.filtering.url_params import decode_state, encode_state
from stash_player.filtering.values import DateRange, NumericRange, SortSpec
from stash_player.shared.enums import EntityType, SortDirection
from stash_player.shared.exceptions import InvalidPage, LockedField, NotSortable, TypeMismatch, UnknownFieldKey


class TestEncodeState:
    def test_empty_state_has_no_params(self, store: FilterStore, scene_state: FilterState) -> None:
        assert encode_state(scene_state, store.registry) == {}

    def test_full_state(self, store: FilterStore, scene_state: FilterState) -> None:
        state = store.set_filter_value(scene_state, "title", "beach")
        state = store.set_filter_value(state, "date", {"max": date(2024, 1, 31)})
        state = store.set_filter_value(state, "performerCount", {"min": 2})
        state = store.set_filter_value(state, "organized", True)
        state = store.set_search(state, "sunset")
        state = store.set_per_page(state, 48)
        state = store.set_sort(state, "title", "desc")
        state = store.set_page(state, 2)
        assert encode_state(state, store.registry) == {
            "title": "beach",
            "date_max": "2024-01-31",
            "performerCount_min": "2",
            "organized": "true",
            "q": "sunset",
            "sort": "title",
            "dir": "desc",
            "page": "3",
            "per_page": "48",
        }


class TestDecodeState:
    def test_parses_values(self, store: FilterStore) -> None:
        state = decode_state(
            {
                "performerCount_min": "2",
                "rating_max": "4.5",
                "date_min": "2023-05-01",
                "organized": "false",
                "resolution": "FULL_HD",
                "sort": "title",
                "dir": "asc",
                "page": "2",
            },
            EntityType.SCENE,
            store,
        )
        assert state.values == {
            "performerCount": NumericRange(min=2),
            "rating": NumericRange(max=4.5),
            "date": DateRange(min=date(2023, 5, 1)),
            "organized": False,
            "resolution": "FULL_HD",
        }
        assert state.sort == SortSpec(key="title", direction=SortDirection.ASC)
        assert state.page == 1

    def test_blank_values_ignored(self, store: FilterStore) -> None:
        state = decode_state({"title": "", "q": "", "page": ""}, "scene", store)
        assert state == store.init(EntityType.SCENE)

    def test_direction_without_sort_applies_to_default(self, store: FilterStore) -> None:
        state = decode_state({"dir": "asc"}, "tag", store)
        assert state.sort == SortSpec(key="createdAt", direction=SortDirection.ASC)

    def test_round_trip(self, store: FilterStore, performer_state: FilterState) -> None:
        state = store.set_filter_value(performer_state, "gender", "FEMALE")
        state = store.set_filter_value(state, "height", {"min": 160, "max": 175})
        state = store.set_filter_value(state, "favorite", True)
        state = store.set_sort(state, "sceneCount", "desc")
        state = store.set_page(state, 4)
        params = encode_state(state, store.registry)
        assert decode_state(params, EntityType.PERFORMER, store) == state

    @pytest.mark.parametrize(
        ("params", "error"),
        [
            ({"bogusField": "x"}, UnknownFieldKey),
            ({"title_min": "3"}, UnknownFieldKey),
            ({"performerCount_min": "two"}, TypeMismatch),
            ({"performerCount_min": "2.5"}, TypeMismatch),
            ({"rating_min": "nan"}, TypeMismatch),
            ({"rating_max": "inf"}, TypeMismatch),
            ({"tags": "3,x"}, TypeMismatch),
            ({"date_min": "yesterday"}, TypeMismatch),
            ({"organized": "maybe"}, TypeMismatch),
            ({"resolution": "720"}, TypeMismatch),
            ({"sort": "id"}, NotSortable),
            ({"page": "0"}, InvalidPage),
            ({"page": "two"}, InvalidPage),
            ({"per_page": "1000"}, InvalidPage),
        ],
    )
    def test_errors(self, store: FilterStore, params: dict[str, str], error: type[Exception]) -> None:
        with pytest.raises(error):
            decode_state(params, EntityType.SCENE, store)


class TestIdsAndScopes:
    def test_ids_comma_separated(self, store: FilterStore, scene_state: FilterState) -> None:
        state = store.set_filter_value(scene_state, "tags", [17, 3])
        params = encode_state(state, store.registry)
        assert params == {"tags": "3,17"}
        assert decode_state(params, EntityType.SCENE, store) == state

    def test_permanent_filters_stay_out_of_the_url(self, store: FilterStore) -> None:
        state = store.init(EntityType.SCENE, {"performers": [12]})
        state = store.set_filter_value(state, "organized", True)
        params = encode_state(state, store.registry)
        assert params == {"organized": "true"}
        assert decode_state(params, EntityType.SCENE, store, permanent={"performers": [12]}) == state

    def test_url_cannot_override_permanent_filter(self, store: FilterStore) -> None:
        with pytest.raises(LockedField):
            decode_state({"performers": "13"}, EntityType.SCENE, store, permanent={"performers": [12]})
