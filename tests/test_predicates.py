"""
Unit tests for the rule predicates.

Each predicate is tested on its own so a rule change shows up as a
failing test for exactly that rule.
"""

import pytest

from models.selection import Category, CourseType, SelectionState, Stream
from modules import predicates as rules


# Fixtures

@pytest.fixture
def engineering_open():
    """Engineering, Open category, third year."""
    return SelectionState(stream=Stream.ENGINEERING, category=Category.OPEN, current_year=3)


# Tests for course structure

class TestCourseStructure:
    """Test course choice and year caps."""

    @pytest.mark.parametrize("stream", [Stream.PHARMACY, Stream.MANAGEMENT, Stream.ASC])
    def test_streams_with_course_choice(self, stream):
        """Pharmacy, Management and ASC ask for a course."""
        assert rules.requires_course_choice(stream)
        assert rules.course_options(stream)

    @pytest.mark.parametrize("stream", [Stream.ENGINEERING, Stream.NURSING, None])
    def test_streams_without_course_choice(self, stream):
        """Engineering and Nursing have a single implicit course."""
        assert not rules.requires_course_choice(stream)
        assert rules.course_options(stream) == ()

    def test_every_course_belongs_to_one_stream(self):
        """The 13 course variants are split across streams without overlap."""
        seen = []
        for stream in Stream:
            seen.extend(rules.course_options(stream))
        assert len(seen) == len(set(seen)) == len(CourseType)

    @pytest.mark.parametrize("course", [
        CourseType.MPHARM, CourseType.DPHARM, CourseType.MBA, CourseType.MCA,
        CourseType.MA, CourseType.MSC, CourseType.MCOM,
    ])
    def test_two_year_courses(self, course):
        """Master's courses and D-Pharmacy cap at year 2."""
        assert rules.year_cap(course) == 2
        assert rules.year_options(course) == (1, 2)

    @pytest.mark.parametrize("course", [
        CourseType.BPHARM, CourseType.BBA, CourseType.BCA,
        CourseType.BA, CourseType.BSC, CourseType.BCOM, None,
    ])
    def test_four_year_courses(self, course):
        """Bachelor's and implicit courses run up to four years."""
        assert rules.year_cap(course) == 4
        assert rules.year_options(course) == (1, 2, 3, 4)

    def test_implicit_course_is_not_special(self, engineering_open):
        """No course means no Master's or D-Pharmacy special-casing."""
        assert not rules.is_master_course(engineering_open)
        assert not rules.is_dpharm(engineering_open)

    def test_asc_is_not_professional(self):
        assert not rules.is_professional_stream(SelectionState(stream=Stream.ASC))
        assert rules.is_professional_stream(SelectionState(stream=Stream.NURSING))


# Tests for admission type

class TestAdmissionType:
    """Test fresh / renewal / direct second year."""

    def test_fresh_admission(self):
        state = SelectionState(current_year=1)
        assert rules.is_fresh_admission(state)
        assert not rules.is_renewal(state)
        assert not rules.needs_login_check(state)

    def test_renewal(self, engineering_open):
        assert rules.is_renewal(engineering_open)
        assert rules.needs_login_check(engineering_open)

    def test_no_year_is_neither(self):
        state = SelectionState()
        assert not rules.is_fresh_admission(state)
        assert not rules.is_renewal(state)

    def test_direct_second_year_only_bpharm_year_two(self):
        """Lateral entry applies to B-Pharmacy year 2 only."""
        bpharm_2 = SelectionState(stream=Stream.PHARMACY, course_type=CourseType.BPHARM, current_year=2)
        bpharm_3 = bpharm_2.with_changes(current_year=3)
        dpharm_2 = bpharm_2.with_changes(course_type=CourseType.DPHARM)

        assert rules.allows_direct_second_year(bpharm_2)
        assert not rules.allows_direct_second_year(bpharm_3)
        assert not rules.allows_direct_second_year(dpharm_2)

    def test_direct_second_year_requires_true(self):
        """None and False both mean regular admission."""
        state = SelectionState(course_type=CourseType.BPHARM, current_year=2)
        assert not rules.is_direct_second_year(state)
        assert not rules.is_direct_second_year(state.with_changes(is_direct_second_year=False))
        assert rules.is_direct_second_year(state.with_changes(is_direct_second_year=True))


# Tests for category rules

class TestCategoryRules:
    """Test category-driven predicates."""

    @pytest.mark.parametrize("category,expected", [
        (Category.SC, True), (Category.ST, True), (Category.SBC, True), (Category.VJNT, True),
        (Category.OPEN, False), (Category.OBC, False), (Category.SEBC, False), (Category.MINORITY, False),
    ])
    def test_bonafide_only(self, category, expected):
        assert rules.uses_bonafide_only(SelectionState(category=category)) is expected

    @pytest.mark.parametrize("stream", list(Stream))
    @pytest.mark.parametrize("category", list(Category))
    def test_hostel_documents_iff(self, stream, category):
        """Hostel documents iff hosteller, professional stream and hostel category."""
        state = SelectionState(stream=stream, category=category, is_hosteller=True)
        expected = stream is not Stream.ASC and category in {
            Category.OPEN, Category.SC, Category.ST, Category.SBC, Category.VJNT,
        }
        assert rules.has_hostel_documents(state) is expected
        assert not rules.has_hostel_documents(state.with_changes(is_hosteller=False))

    @pytest.mark.parametrize("category", list(Category))
    def test_choice_group_iff(self, category):
        """Choice group iff Open category hosteller."""
        state = SelectionState(stream=Stream.ENGINEERING, category=category, is_hosteller=True)
        assert rules.has_choice_group(state) is (category is Category.OPEN)
        assert not rules.has_choice_group(state.with_changes(is_hosteller=False))

    def test_income_certificate_first_year_always(self):
        state = SelectionState(category=Category.SC, current_year=1)
        assert rules.needs_income_certificate(state)

    @pytest.mark.parametrize("category,expected", [
        (Category.OPEN, True), (Category.SEBC, True), (Category.MINORITY, True),
        (Category.SC, False), (Category.OBC, False),
    ])
    def test_income_certificate_renewal(self, category, expected):
        state = SelectionState(category=category, current_year=2)
        assert rules.needs_income_certificate(state) is expected

    def test_caste_documents(self):
        assert not rules.needs_caste_documents(SelectionState(category=Category.OPEN))
        assert not rules.needs_caste_documents(SelectionState(category=Category.MINORITY))
        assert rules.needs_caste_documents(SelectionState(category=Category.VJNT))

    def test_non_creamy_layer_skips_asc(self):
        """Non-creamy layer is asked only outside ASC."""
        state = SelectionState(stream=Stream.ASC, category=Category.OBC)
        assert not rules.needs_non_creamy_layer(state)
        assert rules.needs_non_creamy_layer(state.with_changes(stream=Stream.ENGINEERING))
        assert not rules.needs_non_creamy_layer(
            SelectionState(stream=Stream.ENGINEERING, category=Category.SC)
        )


# Tests for completeness checks

class TestCompleteness:
    """Test missing_fields and invariant_violations."""

    def test_empty_state_missing_everything(self):
        assert rules.missing_fields(SelectionState()) == ["stream", "category", "current_year"]

    def test_course_required_for_pharmacy(self):
        state = SelectionState(stream=Stream.PHARMACY, category=Category.SC, current_year=1)
        assert rules.missing_fields(state) == ["course_type"]

    def test_complete_engineering_state(self, engineering_open):
        assert rules.missing_fields(engineering_open) == []
        assert rules.invariant_violations(engineering_open) == []

    def test_course_from_other_stream(self):
        state = SelectionState(stream=Stream.PHARMACY, course_type=CourseType.MBA)
        assert len(rules.invariant_violations(state)) == 1

    def test_year_above_cap(self):
        state = SelectionState(
            stream=Stream.PHARMACY, course_type=CourseType.MPHARM, current_year=3
        )
        assert any("year 3" in p for p in rules.invariant_violations(state))

    def test_direct_second_year_outside_bpharm(self, engineering_open):
        state = engineering_open.with_changes(is_direct_second_year=False)
        assert rules.invariant_violations(state)
