"""Tests for the biopsy store and report session."""

from dataclasses import replace

from endoreport.biopsy import Biopsy
from endoreport.editor import set_finding
from endoreport.schema import BiopsyLocation, NOT_DONE
from endoreport.store import BiopsyStore, ReportSession, new_biopsy


class TestNewBiopsy:
    def test_stomach_defaults(self):
        b = new_biopsy(BiopsyLocation.STOMACH, 3)
        assert b.sequence == 3
        assert b.sub_locations == []
        assert b.custom_diagnosis == "Normal görünümlü mide mukozası"
        assert b.findings.hp == "-"
        assert b.findings.intestinal_metaplasia == "-"
        assert b.stomach_features["synaptophysin"] is None
        assert b.esophagus_features is None
        assert b.stains == ["PAS+AB", "Warthin Starry"]

    def test_non_stomach_defaults_mark_hp_not_done(self):
        b = new_biopsy(BiopsyLocation.DUODENUM, 1)
        assert b.sub_locations == ["Duodenum"]
        assert b.findings.hp == NOT_DONE
        assert b.findings.inflammation == "-"
        assert b.duodenum_features["marsh0"] is True
        assert b.duodenum_features["marsh1"] is False

    def test_ids_are_unique(self):
        ids = {new_biopsy(BiopsyLocation.COLON, i).id for i in range(50)}
        assert len(ids) == 50


class TestBiopsyStore:
    def test_add_appends_in_order(self):
        store = BiopsyStore()
        a = store.add(BiopsyLocation.COLON)
        b = store.add(BiopsyLocation.ILEUM)
        assert [x.id for x in store] == [a.id, b.id]
        assert b.sequence == 2

    def test_update_unknown_id_is_ignored(self):
        store = BiopsyStore()
        store.add(BiopsyLocation.COLON)
        stray = new_biopsy(BiopsyLocation.COLON, 9)

        assert store.update(stray) is None
        assert len(store) == 1
        assert store.get(stray.id) is None

    def test_update_applies_derivation(self):
        store = BiopsyStore()
        b = store.add(BiopsyLocation.STOMACH)
        stored = store.update(set_finding(b, "inflammation", "+"))
        assert stored.custom_diagnosis == "Kronik gastrit"
        assert store.get(b.id) == stored

    def test_remove_keeps_sequence_of_others(self):
        store = BiopsyStore()
        a = store.add(BiopsyLocation.COLON)
        b = store.add(BiopsyLocation.COLON)
        c = store.add(BiopsyLocation.COLON)

        store.remove(b.id)
        assert [x.id for x in store] == [a.id, c.id]
        assert store.get(c.id).sequence == 3

    def test_remove_unknown_id_is_ignored(self):
        store = BiopsyStore()
        store.add(BiopsyLocation.COLON)
        store.remove("missing")
        assert len(store) == 1

    def test_biopsies_returns_a_copy(self):
        store = BiopsyStore()
        store.add(BiopsyLocation.COLON)
        store.biopsies.clear()
        assert len(store) == 1


class TestReportSession:
    def test_add_focuses_new_biopsy(self, session):
        b = session.add_biopsy(BiopsyLocation.ILEUM)
        assert session.active_field == f"{b.id}-active"
        assert session.active_biopsy_id == b.id

    def test_update_sets_field_focus(self, session):
        b = session.add_biopsy(BiopsyLocation.STOMACH)
        session.update_biopsy(set_finding(b, "hp", "+"), "finding-hp")
        assert session.active_field == f"{b.id}-finding-hp"

    def test_remove_clears_focus_of_removed_biopsy(self, session):
        a = session.add_biopsy(BiopsyLocation.ILEUM)
        b = session.add_biopsy(BiopsyLocation.ILEUM)
        session.focus(a.id)

        session.remove_biopsy(b.id)
        assert session.active_biopsy_id == a.id

        session.remove_biopsy(a.id)
        assert session.active_field is None

    def test_focus_ignores_unknown_id(self, session):
        b = session.add_biopsy(BiopsyLocation.ILEUM)
        session.focus("missing")
        assert session.active_biopsy_id == b.id

    def test_reset_keeps_stain_config(self, stained_session):
        stained_session.add_biopsy(BiopsyLocation.STOMACH)
        config = stained_session.stain_config
        stained_session.reset()
        assert stained_session.biopsies == []
        assert stained_session.stain_config is config

    def test_dict_round_trip(self, stained_session, add_stomach):
        b = add_stomach(stained_session, "Antrum", hp="++")
        stained_session.update_biopsy(replace(b, custom_notes=["Not"]), "customNotes")
        stained_session.add_biopsy(BiopsyLocation.ESOPHAGUS)

        restored = ReportSession.from_dict(stained_session.to_dict())
        assert restored.biopsies == stained_session.biopsies
        assert restored.stain_config == stained_session.stain_config
        assert restored.active_field == stained_session.active_field
        assert restored.report_text() == stained_session.report_text()

    def test_from_empty_dict_uses_defaults(self):
        s = ReportSession.from_dict(None)
        assert s.biopsies == []
        assert s.stain_config[BiopsyLocation.STOMACH]

    def test_biopsy_location_survives_serialisation(self):
        b = new_biopsy(BiopsyLocation.DUODENUM, 1)
        d = b.to_dict()
        assert d["location"] == "Duodenum/Bulbus"
        assert Biopsy.from_dict(d) == b
