"""Tests for report text generation."""

from dataclasses import replace

from endoreport.editor import add_custom_stain, add_note, set_eosinophil_count, set_synaptophysin, toggle_feature
from endoreport.generate import generate_report, generate_report_lines
from endoreport.schema import BiopsyLocation, NOT_DONE
from endoreport.stains import Stain


class TestStomachBlock:
    def test_graded_inflammation_lists_all_findings(self, session, add_stomach):
        add_stomach(session, "Antrum", inflammation="+")

        assert session.report_text() == "\n".join([
            "1- Mide, Antrum, endoskopik biyopsi: Kronik gastrit",
            "     - İnflamasyon: (+)",
            "     - Aktivasyon: (-)",
            "     - Atrofi: (-)",
            "     - HP: (-)",
            "     - İntestinal metaplazi: (-)",
        ])

    def test_inactive_stomach_shows_only_hp_and_im(self, session, add_stomach):
        add_stomach(session, "Korpus")

        assert session.report_text() == "\n".join([
            "1- Mide, Korpus, endoskopik biyopsi: Normal görünümlü mide mukozası",
            "     - HP: (-)",
            "     - İntestinal metaplazi: (-)",
        ])

    def test_not_done_findings_are_omitted(self, session, add_stomach):
        add_stomach(session, "Antrum", activation="++", hp=NOT_DONE, intestinal_metaplasia=NOT_DONE)

        text = session.report_text()
        assert "Aktivasyonlu kronik gastrit" in text
        assert "HP:" not in text
        assert "İntestinal metaplazi:" not in text
        assert "     - Atrofi: (-)" in text

    def test_features_and_synaptophysin(self, session, add_stomach):
        b = add_stomach(session, "Antrum")
        b = toggle_feature(b, "stomach_features", "no_dysplasia")
        b = set_synaptophysin(b, "linear")
        session.update_biopsy(b)

        lines = session.report_text().splitlines()
        assert lines[-2:] == [
            "     - Displazi yoktur",
            "     - Lineer nöroendokrin hücre hiperplazisi (Sinaptofizin ile)",
        ]


class TestNumbering:
    def test_repeated_main_location_gets_group_suffix(self, session, add_stomach):
        add_stomach(session, "Antrum")
        add_stomach(session, "Antrum")
        add_stomach(session, "Korpus")

        titles = [line for line in session.report_text().splitlines() if "endoskopik biyopsi" in line]
        assert titles == [
            "1- Mide, Antrum (1/2), endoskopik biyopsi: Normal görünümlü mide mukozası",
            "2- Mide, Antrum (2/2), endoskopik biyopsi: Normal görünümlü mide mukozası",
            "3- Mide, Korpus, endoskopik biyopsi: Normal görünümlü mide mukozası",
        ]

    def test_reordering_changes_numbering(self, session, add_stomach):
        a = add_stomach(session, "Antrum")
        c = add_stomach(session, "Korpus")
        b = add_stomach(session, "Antrum")

        reordered = [c, b, a]
        titles = [line for line in generate_report(reordered, {}).splitlines() if "endoskopik" in line]
        assert titles[0].startswith("1- Mide, Korpus, ")
        assert titles[1].startswith("2- Mide, Antrum (1/2), ")
        assert titles[2].startswith("3- Mide, Antrum (2/2), ")

    def test_additional_locations_follow_the_suffix(self, session, add_stomach):
        b = add_stomach(session, "Antrum")
        session.update_biopsy(replace(b, sub_locations=["Antrum", "Ön duvar"]))
        add_stomach(session, "Antrum")

        first = session.report_text().splitlines()[0]
        assert first == "1- Mide, Antrum (1/2), Ön duvar, endoskopik biyopsi: Normal görünümlü mide mukozası"

    def test_same_site_in_different_organs_is_not_grouped(self, session):
        session.add_biopsy(BiopsyLocation.ILEUM)
        b = session.add_biopsy(BiopsyLocation.COLON)
        session.update_biopsy(replace(b, sub_locations=["Terminal ileum"]))

        assert "(1/2)" not in session.report_text()


class TestOtherLocations:
    def test_empty_diagnosis_keeps_title(self, session):
        session.add_biopsy(BiopsyLocation.ESOPHAGUS)
        assert session.report_text() == "1- Özofagus, endoskopik biyopsi: "

    def test_default_diagnosis_titles(self, session):
        session.add_biopsy(BiopsyLocation.ILEUM)
        session.add_biopsy(BiopsyLocation.DUODENUM)

        assert session.report_text().splitlines() == [
            "1- Terminal ileum, endoskopik biyopsi: Normal görünümlü ileum mukozası",
            "",
            "2- Duodenum, endoskopik biyopsi: Normal görünümlü duodenum mukozası",
        ]

    def test_esophagus_feature_not_repeated_from_diagnosis(self, session):
        b = session.add_biopsy(BiopsyLocation.ESOPHAGUS)
        b = toggle_feature(b, "esophagus_features", "no_dysplasia")
        b = toggle_feature(b, "esophagus_features", "hp_negative")
        session.update_biopsy(replace(b, custom_diagnosis="Reflü özofajit, Displazi yoktur"))

        assert session.report_text().splitlines()[1:] == ["     - HP: (-)"]

    def test_notes_and_eosinophils(self, session):
        b = session.add_biopsy(BiopsyLocation.COLON)
        b = replace(b, sub_locations=["Rektum"])
        b = add_note(b, "Kript distorsiyonu yoktur")
        b = add_note(b, "Displazi yoktur.")
        b = set_eosinophil_count(b, "12")
        session.update_biopsy(b)

        assert session.report_text().splitlines() == [
            "1- Rektum, endoskopik biyopsi: ",
            "     - Kript distorsiyonu yoktur.",
            "     - Displazi yoktur.",
            "     - BBA'da eozinofil sayısı: 12",
        ]

    def test_blocks_separated_by_blank_line(self, session):
        session.add_biopsy(BiopsyLocation.ILEUM)
        session.add_biopsy(BiopsyLocation.ILEUM)

        assert session.report_text() == (
            "1- Terminal ileum (1/2), endoskopik biyopsi: Normal görünümlü ileum mukozası"
            "\n\n"
            "2- Terminal ileum (2/2), endoskopik biyopsi: Normal görünümlü ileum mukozası"
        )


class TestStainSection:
    def test_empty_list_yields_empty_report(self, stained_session):
        assert stained_session.report_text() == ""

    def test_default_stomach_stains(self, stained_session, add_stomach):
        add_stomach(stained_session, "Antrum")
        add_stomach(stained_session, "Korpus")

        tail = stained_session.report_text().split("\n\nHistokimyasal yöntemle:\n", 1)[1]
        assert tail == (
            "1,2 nolu örnekte mide mukozasında intestinal metaplaziyi değerlendirmek için PAS+AB\n"
            "1,2 nolu örnekte Helikobakter Pilori değerlendirmek için Warthin Starry boyası yapılmıştır."
        )

    def test_hp_stain_dropped_when_hp_never_evaluated(self, stained_session, add_stomach):
        add_stomach(stained_session, "Antrum", hp=NOT_DONE)
        add_stomach(stained_session, "Korpus", hp=NOT_DONE)

        text = stained_session.report_text()
        assert "Warthin Starry" not in text
        assert "1,2 nolu örnekte mide mukozasında intestinal metaplaziyi" in text

    def test_special_stain_limited_to_evaluated_biopsies(self, stained_session, add_stomach):
        add_stomach(stained_session, "Antrum", intestinal_metaplasia=NOT_DONE)
        add_stomach(stained_session, "Korpus")

        assert "\n2 nolu örnekte mide mukozasında intestinal metaplaziyi değerlendirmek için PAS+AB" in (
            stained_session.report_text()
        )

    def test_locations_in_order_of_first_appearance(self, stained_session, add_stomach):
        stained_session.add_biopsy(BiopsyLocation.DUODENUM)
        add_stomach(stained_session, "Antrum", hp=NOT_DONE, intestinal_metaplasia=NOT_DONE)

        section = stained_session.report_text().split("Histokimyasal yöntemle:\n", 1)[1]
        assert section == (
            "1 nolu örnekte Duedonum mukozasında villus ve silyalı epiteli "
            "değerlendirmek için PAS boyası yapılmıştır."
        )

    def test_indices_sorted_numerically(self):
        from endoreport.store import BiopsyStore

        store = BiopsyStore()
        for _ in range(11):
            store.add(BiopsyLocation.COLON)
        config = {BiopsyLocation.COLON: [Stain("Toluidin Blue", "mast hücreleri için")]}

        text = generate_report(list(reversed(store.biopsies)), config)
        assert "1,2,3,4,5,6,7,8,9,10,11 nolu örnekte mast hücreleri için Toluidin Blue" in text

    def test_custom_stains_listed_after_configured(self, stained_session):
        stained_session.add_biopsy(BiopsyLocation.ILEUM)
        b = stained_session.add_biopsy(BiopsyLocation.COLON)
        stained_session.update_biopsy(add_custom_stain(b, "Kongo kırmızısı"))

        assert stained_session.report_text().endswith(
            "\n\nHistokimyasal yöntemle:\n2- no Kongo kırmızısı boyası yapılmıştır."
        )

    def test_location_without_stains_contributes_nothing(self, stained_session):
        stained_session.add_biopsy(BiopsyLocation.ILEUM)
        assert "Histokimyasal" not in stained_session.report_text()


class TestDeterminism:
    def test_generation_is_idempotent_and_read_only(self, stained_session, add_stomach):
        add_stomach(stained_session, "Antrum", inflammation="++")
        stained_session.add_biopsy(BiopsyLocation.DUODENUM)
        before = stained_session.to_dict()

        first = generate_report_lines(stained_session.biopsies, stained_session.stain_config)
        second = generate_report_lines(stained_session.biopsies, stained_session.stain_config)

        assert first == second
        assert stained_session.to_dict() == before
