"""
Unit tests for FieldMapperDelegate selection, narrowing and resolution.
"""

import pytest
from asgiref.sync import async_to_sync

from rail_transform import (
    PERMISSION_RANKING,
    CustomFieldMapper,
    FieldMapperDelegate,
    FieldPermissionLvl,
    InvalidPermissionRanking,
    PassthroughFieldMapper,
    SelectionConsumed,
    SubTransformFieldMapper,
    UnknownPermissionLevel,
    UnsupportedDefaultAccessor,
)

pytestmark = pytest.mark.unit

CUSTOM_RANKING = ["low", "medium", "high"]


def _transform(delegate, permission, instance):
    return async_to_sync(delegate.transform)(permission, instance)


class TestConstruction:
    def test_default_ranking(self):
        delegate = FieldMapperDelegate("woop")

        assert delegate.is_default_ranking is True
        assert delegate.permission_ranking == PERMISSION_RANKING
        assert delegate.source_key == "woop"
        assert delegate.is_list is False

    def test_custom_ranking(self):
        delegate = FieldMapperDelegate("woop", CUSTOM_RANKING)

        assert delegate.is_default_ranking is False
        assert list(delegate.permission_ranking) == CUSTOM_RANKING

    def test_every_level_starts_denied(self):
        delegate = FieldMapperDelegate("woop")

        for level in delegate.permission_ranking:
            assert delegate.mapper_for(level) is None
            assert delegate.permits(level) is False

    def test_duplicate_levels_rejected(self):
        with pytest.raises(InvalidPermissionRanking):
            FieldMapperDelegate("woop", ["low", "high", "low"])

    def test_empty_ranking_rejected(self):
        with pytest.raises(InvalidPermissionRanking):
            FieldMapperDelegate("woop", [])

    @pytest.mark.parametrize(
        "ranking", [["Low", "low"], ["read only", "read-only"], ["low", "!!"]]
    )
    def test_conflicting_accessor_names_rejected(self, ranking):
        with pytest.raises(InvalidPermissionRanking):
            FieldMapperDelegate("woop", ranking)


class TestSelection:
    def test_always_selects_broadcast(self):
        delegate = FieldMapperDelegate("woop")
        selection = delegate.always()

        assert selection.broadcast is True
        assert selection.level == PERMISSION_RANKING[0]
        assert selection.delegate is delegate

    def test_when_private(self):
        selection = FieldMapperDelegate("woop").when_private()

        assert selection.level == FieldPermissionLvl.PRIVATE
        assert selection.broadcast is False
        assert selection.cutoff_index is None
        assert selection.sole_index is None

    def test_when_accepts_unranked_level(self):
        selection = FieldMapperDelegate("woop").when("superuser")
        assert selection.level == "superuser"

    def test_restrict_to_records_sole_index(self):
        delegate = FieldMapperDelegate("woop")
        index = delegate.permission_ranking.index(FieldPermissionLvl.PRIVATE)

        selection = delegate.restrict_to_private()

        assert selection.level == FieldPermissionLvl.PRIVATE
        assert selection.sole_index == index

    def test_at_or_above_records_cutoff_index(self):
        delegate = FieldMapperDelegate("woop", CUSTOM_RANKING)

        selection = delegate.at_or_above("medium")

        assert selection.level == "medium"
        assert selection.cutoff_index == 1

    @pytest.mark.parametrize("method", ["at_or_above", "restrict_to"])
    def test_unknown_level_raises(self, method):
        delegate = FieldMapperDelegate("woop")

        with pytest.raises(UnknownPermissionLevel) as exc_info:
            getattr(delegate, method)("superuser")

        assert exc_info.value.permission == "superuser"
        assert exc_info.value.source_key == "woop"

    def test_string_token_matches_enum_level(self):
        selection = FieldMapperDelegate("woop").restrict_to("private")
        assert selection.sole_index == 1


class TestAssignment:
    def test_always_passthrough_sets_every_level(self):
        delegate = FieldMapperDelegate("woop")

        result = delegate.always().passthrough()

        assert result is delegate
        for level in delegate.permission_ranking:
            assert isinstance(delegate.mapper_for(level), PassthroughFieldMapper)

    def test_always_build_with_sets_every_level(self):
        delegate = FieldMapperDelegate("woop")

        def builder(instance, key, is_list):
            return "built"

        delegate.always().build_with(builder)

        for level in delegate.permission_ranking:
            mapper = delegate.mapper_for(level)
            assert isinstance(mapper, CustomFieldMapper)
            assert mapper.builder is builder

    def test_sub_transform_with_permission_shares_one_mapper(self):
        delegate = FieldMapperDelegate("woop")

        delegate.always().sub_transform("something", FieldPermissionLvl.PUBLIC)

        mappers = [delegate.mapper_for(level) for level in delegate.permission_ranking]
        assert all(isinstance(m, SubTransformFieldMapper) for m in mappers)
        assert all(m is mappers[0] for m in mappers)
        assert mappers[0].permission == FieldPermissionLvl.PUBLIC

    def test_sub_transform_without_permission_cascades(self):
        delegate = FieldMapperDelegate("woop")

        delegate.always().sub_transform("something")

        mappers = []
        for level in delegate.permission_ranking:
            mapper = delegate.mapper_for(level)
            assert isinstance(mapper, SubTransformFieldMapper)
            assert mapper.permission == level
            mappers.append(mapper)
        assert len({id(m) for m in mappers}) == len(mappers)

    def test_sub_transform_unknown_permission_raises(self):
        delegate = FieldMapperDelegate("woop")

        with pytest.raises(UnknownPermissionLevel):
            delegate.always().sub_transform("something", "superuser")

    def test_sub_transform_is_narrowed_by_restriction(self):
        delegate = FieldMapperDelegate("woop")

        delegate.restrict_to_admin().sub_transform("something")

        assert delegate.mapper_for(FieldPermissionLvl.PUBLIC) is None
        assert delegate.mapper_for(FieldPermissionLvl.PRIVATE) is None
        admin_mapper = delegate.mapper_for(FieldPermissionLvl.ADMIN)
        assert admin_mapper.permission == FieldPermissionLvl.ADMIN

    def test_restrict_to_only_grants_one_level(self):
        delegate = FieldMapperDelegate("woop")
        index = delegate.permission_ranking.index(FieldPermissionLvl.PRIVATE)

        delegate.restrict_to_private().passthrough()

        for i, level in enumerate(delegate.permission_ranking):
            if i == index:
                assert isinstance(delegate.mapper_for(level), PassthroughFieldMapper)
            else:
                assert delegate.mapper_for(level) is None

    def test_at_or_above_grants_upper_levels(self):
        delegate = FieldMapperDelegate("woop", CUSTOM_RANKING)

        delegate.at_or_above_medium().passthrough()

        assert delegate.mapper_for("low") is None
        assert delegate.mapper_for("medium") is delegate.mapper_for("high")
        assert isinstance(delegate.mapper_for("high"), PassthroughFieldMapper)

    def test_when_only_touches_selected_level(self):
        delegate = FieldMapperDelegate("woop")
        delegate.always().passthrough()

        delegate.when_admin().build_with(lambda instance, key, is_list: "admin")

        assert isinstance(delegate.mapper_for(FieldPermissionLvl.PUBLIC), PassthroughFieldMapper)
        assert isinstance(delegate.mapper_for(FieldPermissionLvl.ADMIN), CustomFieldMapper)

    def test_when_unranked_level_is_not_stored(self):
        delegate = FieldMapperDelegate("woop")

        delegate.when("superuser").passthrough()

        assert delegate.mapper_for("superuser") is None
        for level in delegate.permission_ranking:
            assert delegate.mapper_for(level) is None

    def test_restriction_does_not_leak_into_next_chain(self):
        delegate = FieldMapperDelegate("woop")

        delegate.restrict_to_private().passthrough()
        delegate.when_public().build_with(lambda instance, key, is_list: "public")

        assert isinstance(delegate.mapper_for(FieldPermissionLvl.PUBLIC), CustomFieldMapper)
        assert isinstance(delegate.mapper_for(FieldPermissionLvl.PRIVATE), PassthroughFieldMapper)
        assert delegate.mapper_for(FieldPermissionLvl.ADMIN) is None

    def test_later_chain_overrides_earlier(self):
        delegate = FieldMapperDelegate("woop")

        delegate.always().passthrough()
        delegate.at_or_above_admin().build_with(lambda instance, key, is_list: None)

        assert delegate.mapper_for(FieldPermissionLvl.PUBLIC) is None
        assert delegate.mapper_for(FieldPermissionLvl.PRIVATE) is None
        assert isinstance(delegate.mapper_for(FieldPermissionLvl.ADMIN), CustomFieldMapper)

    def test_selection_cannot_be_reused(self):
        delegate = FieldMapperDelegate("woop")
        selection = delegate.restrict_to_private()
        selection.passthrough()

        with pytest.raises(SelectionConsumed):
            selection.build_with(lambda instance, key, is_list: "again")
        with pytest.raises(SelectionConsumed):
            selection.sub_transform("something")

        assert isinstance(delegate.mapper_for(FieldPermissionLvl.PRIVATE), PassthroughFieldMapper)

    def test_sub_transform_selection_cannot_be_reused(self):
        delegate = FieldMapperDelegate("woop")
        selection = delegate.always()
        selection.sub_transform("something")

        with pytest.raises(SelectionConsumed):
            selection.passthrough()

    def test_as_list(self):
        delegate = FieldMapperDelegate("woop").as_list()
        assert delegate.is_list is True


class TestTransform:
    def test_transform_at_granted_level(self):
        delegate = FieldMapperDelegate("woop")
        delegate.restrict_to_private().passthrough()

        assert _transform(delegate, FieldPermissionLvl.PRIVATE, {"woop": 200}) == 200

    def test_transform_below_level_is_denied(self):
        delegate = FieldMapperDelegate("woop")
        delegate.restrict_to_private().passthrough()

        assert _transform(delegate, FieldPermissionLvl.PUBLIC, {"woop": 200}) is None

    def test_transform_unknown_level_is_denied(self):
        delegate = FieldMapperDelegate("woop")
        delegate.always().passthrough()

        assert _transform(delegate, "superuser", {"woop": 200}) is None

    def test_denied_level_never_calls_mapper(self):
        calls = []
        delegate = FieldMapperDelegate("woop")
        delegate.restrict_to_admin().build_with(
            lambda instance, key, is_list: calls.append(key)
        )

        _transform(delegate, FieldPermissionLvl.PUBLIC, {"woop": 1})

        assert calls == []

    def test_list_flag_reaches_mapper(self):
        seen = []
        delegate = FieldMapperDelegate("woop").as_list()
        delegate.always().build_with(
            lambda instance, key, is_list: seen.append((key, is_list)) or "ok"
        )

        assert _transform(delegate, FieldPermissionLvl.PUBLIC, {}) == "ok"
        assert seen == [("woop", True)]

    def test_mapper_errors_propagate(self):
        def builder(instance, key, is_list):
            raise RuntimeError("boom")

        delegate = FieldMapperDelegate("woop")
        delegate.always().build_with(builder)

        with pytest.raises(RuntimeError, match="boom"):
            _transform(delegate, FieldPermissionLvl.PUBLIC, {"woop": 1})


class TestAccessors:
    def test_custom_ranking_accessors(self):
        delegate = FieldMapperDelegate("woop", CUSTOM_RANKING)

        for level in CUSTOM_RANKING:
            assert getattr(delegate, f"when_{level}")().level == level
            assert getattr(delegate, f"restrict_to_{level}")().sole_index == CUSTOM_RANKING.index(level)
            assert getattr(delegate, f"at_or_above_{level}")().cutoff_index == CUSTOM_RANKING.index(level)

    def test_custom_accessors_listed_in_dir(self):
        delegate = FieldMapperDelegate("woop", CUSTOM_RANKING)
        names = dir(delegate)

        for level in CUSTOM_RANKING:
            assert f"when_{level}" in names
            assert f"restrict_to_{level}" in names
            assert f"at_or_above_{level}" in names

    def test_accessor_table(self):
        delegate = FieldMapperDelegate("woop", CUSTOM_RANKING)

        selection = delegate.accessors["high"].restrict_to()

        assert selection.level == "high"
        assert selection.sole_index == 2

    def test_default_accessor_on_custom_ranking_raises(self):
        delegate = FieldMapperDelegate("woop", CUSTOM_RANKING)

        with pytest.raises(UnsupportedDefaultAccessor):
            delegate.when_private()

    def test_custom_ranking_shadows_default_accessor(self):
        delegate = FieldMapperDelegate("woop", ["public", "private", "owner"])

        assert delegate.when_private().level == "private"
        with pytest.raises(UnsupportedDefaultAccessor):
            delegate.restrict_to_admin()

    def test_unknown_attribute_raises_attribute_error(self):
        delegate = FieldMapperDelegate("woop")

        with pytest.raises(AttributeError):
            delegate.when_superuser()

    def test_accessor_names_are_identifier_safe(self):
        delegate = FieldMapperDelegate("woop", ["Read Only", "Full-Access"])

        assert delegate.when_read_only().level == "Read Only"
        assert delegate.restrict_to_full_access().sole_index == 1
