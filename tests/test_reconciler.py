import pytest
from catalog import Course, CurriculumCatalog, EquivalencyRule
from reconciler import CompletedRecord, match_record, reconcile


class TestCompletedRecordFromRaw:
    def test_passthrough(self):
        record = CompletedRecord(code="OLD101")
        assert CompletedRecord.from_raw(record) is record

    def test_bare_string(self):
        assert CompletedRecord.from_raw("  OLD101 ") == CompletedRecord(code="OLD101")

    def test_english_keys(self):
        record = CompletedRecord.from_raw({"code": "OLD101", "name": "Algoritmos I", "credits": "3"})
        assert record == CompletedRecord(code="OLD101", name="Algoritmos I", credits=3)

    def test_spanish_keys(self):
        record = CompletedRecord.from_raw({"codigo": "OLD102", "nombre": "Algoritmos II", "créditos": 4})
        assert record == CompletedRecord(code="OLD102", name="Algoritmos II", credits=4)

    def test_decimal_credit_string(self):
        assert CompletedRecord.from_raw({"code": "OLD101", "credits": "3.0"}).credits == 3

    def test_unreadable_credits_dropped(self):
        assert CompletedRecord.from_raw({"code": "OLD101", "credits": "tres"}).credits is None

    def test_blank_fields_are_none(self):
        assert CompletedRecord.from_raw({"code": "  ", "name": ""}) == CompletedRecord()

    @pytest.mark.parametrize("raw", [None, 42, ["OLD101"]])
    def test_unsupported_shapes_become_empty(self, raw):
        assert CompletedRecord.from_raw(raw) == CompletedRecord()


class TestMatchRecord:
    def test_code_match(self, scenario_catalog):
        match = match_record(CompletedRecord(code="old 101"), scenario_catalog)
        assert match.matched_by == "code"
        assert match.target_codes == ("INF101",)

    def test_code_wins_over_name(self, scenario_catalog):
        record = CompletedRecord(code="OLD101", name="Algoritmos II")
        assert match_record(record, scenario_catalog).target_codes == ("INF101",)

    def test_name_fallback_when_code_unknown(self, scenario_catalog):
        record = CompletedRecord(code="XYZ999", name="ALGORITMOS II")
        match = match_record(record, scenario_catalog)
        assert match.matched_by == "name"
        assert match.target_codes == ("INF102",)

    def test_name_fallback_when_code_missing(self, scenario_catalog):
        match = match_record(CompletedRecord(name="Sistemas de informacion"), scenario_catalog)
        assert match.target_codes == ("INF103",)

    def test_new_plan_code_credits_itself(self, scenario_catalog):
        assert match_record(CompletedRecord(code="INF102"), scenario_catalog).target_codes == ("INF102",)

    def test_no_match(self, scenario_catalog):
        assert match_record(CompletedRecord(code="XYZ999", name="Cálculo"), scenario_catalog) is None

    def test_empty_record(self, scenario_catalog):
        assert match_record(CompletedRecord(), scenario_catalog) is None


class TestReconcile:
    def test_satisfied_from_old_codes(self, scenario_catalog):
        progress = reconcile(["OLD101", "OLD102"], scenario_catalog)
        assert progress.satisfied_courses == frozenset({"INF101", "INF102"})
        assert progress.unmatched_count == 0

    def test_unmatched_record_is_diagnostic(self, scenario_catalog):
        progress = reconcile([{"code": "XYZ999", "name": "Cálculo"}], scenario_catalog)
        assert progress.satisfied_courses == frozenset()
        assert progress.unmatched_count == 1
        assert progress.unmatched[0].code == "XYZ999"

    def test_mixed_records(self, scenario_catalog):
        progress = reconcile(
            ["OLD101", {"name": "Algoritmos II"}, "XYZ999", None],
            scenario_catalog,
        )
        assert progress.satisfied_courses == frozenset({"INF101", "INF102"})
        assert progress.unmatched_count == 2
        assert [m.matched_by for m in progress.matches] == ["code", "name"]

    def test_satisfied_subset_of_catalog(self, scenario_catalog):
        progress = reconcile(["OLD101", "OLD104", "INF103", "ZZZ1"], scenario_catalog)
        assert progress.satisfied_courses <= scenario_catalog.codes

    def test_repeat_record_counted_once(self, scenario_catalog):
        progress = reconcile(["OLD101", "old-101"], scenario_catalog)
        assert progress.satisfied_courses == frozenset({"INF101"})
        assert len(progress.matches) == 2

    def test_no_records(self, scenario_catalog):
        for records in ([], None):
            progress = reconcile(records, scenario_catalog)
            assert progress.satisfied_courses == frozenset()
            assert progress.unmatched_count == 0

    def test_student_identity_trimmed(self, scenario_catalog):
        progress = reconcile([], scenario_catalog, student_name="  Ana Pérez ", student_id=1234)
        assert progress.student_name == "Ana Pérez"
        assert progress.student_id == "1234"

    def test_no_prerequisite_inference(self, scenario_catalog):
        # Completing INF104 directly does not imply its prerequisites.
        progress = reconcile(["INF104"], scenario_catalog)
        assert progress.satisfied_courses == frozenset({"INF104"})


class TestReconcileBundledCatalog:
    def test_one_old_course_credits_two_new(self, bundled_catalog):
        progress = reconcile(["PIN240"], bundled_catalog)
        assert progress.satisfied_courses == frozenset({"EDI204", "EDI402"})
        assert len(progress.ambiguous) == 1

    def test_name_only_rule(self, bundled_catalog):
        progress = reconcile([{"nombre": "CATEDRA UNADISTA"}], bundled_catalog)
        assert progress.satisfied_courses == frozenset({"EDI104"})
        assert progress.matches[0].matched_by == "name"


class TestReusedCodes:
    def test_reused_old_code_credits_only_its_target(self):
        catalog = CurriculumCatalog(
            [
                Course("100410", "Cálculo diferencial", 3),
                Course("200410", "Matemáticas I", 3),
                Course("300410", "Matemáticas II", 3, frozenset({"100410"})),
            ],
            [EquivalencyRule("200410", source_code="100410")],
        )
        progress = reconcile(["100410"], catalog)
        assert progress.satisfied_courses == frozenset({"200410"})
        assert progress.ambiguous == ()
