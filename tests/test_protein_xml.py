"""Tests for the UniProt / mzLibProteinDb protein XML reader."""

import pytest

from conftest import (
    H4_SEQUENCE,
    modified_residue,
    proteolysis_feature,
    protein_entry,
    ptmlist_modification,
    variant_feature,
)
from proteoio.core import Modification, ProteolysisProduct, SequenceVariation
from proteoio.exceptions import MissingField
from proteoio.io.readers.protein_xml import (
    ModificationListCache,
    ProteinXmlReader,
    get_ptm_list_from_protein_xml,
    load_protein_xml,
)

FAYK = Modification("fayk", "UniProt", "A")


@pytest.fixture
def h4_result(h4_xml):
    return load_protein_xml(
        h4_xml,
        generate_decoys=True,
        known_modifications=[FAYK],
        mod_types_to_exclude=["Ensembl"],
    )


class TestUniProtFixture:
    """Test loading of the human histone H4 record."""

    def test_target_and_decoy(self, h4_result):
        target, decoy = h4_result[0], h4_result[1]

        assert target.full_description == "P62805|H4_HUMAN|Histone H4"
        assert decoy.full_description == "DECOY_P62805|H4_HUMAN|Histone H4"
        assert target[0] == "M"
        assert decoy[0] == "M"
        assert not target.is_decoy
        assert decoy.is_decoy

    def test_entry_order(self, h4_result):
        assert [p.accession for p in h4_result] == [
            "P62805", "DECOY_P62805", "P0C0S8", "DECOY_P0C0S8",
        ]
        assert len(h4_result.targets) == 2
        assert len(h4_result.decoys) == 2

    def test_gene_names(self, h4_result):
        target = h4_result[0]
        assert len(target.gene_names) == 42
        assert len(target.primary_gene_names) == 14
        assert target.primary_gene_names[0] == "HIST1H4A"
        assert ("synonym", "H4C1") in target.gene_names

    def test_database_references(self, h4_result):
        target = h4_result[0]
        first = target.database_references[0]

        assert len(target.database_references) == 23
        assert first.type == "Ensembl"
        assert first.id == "ENST00000244537"
        assert first.properties[0] == ("protein sequence ID", "ENSP00000244537")
        assert h4_result[1].database_references == []

    def test_sequence_whitespace_removed(self, h4_result):
        target = h4_result[0]
        assert target.base_sequence == H4_SEQUENCE
        assert len(target) == 103

    def test_features(self, h4_result):
        target = h4_result[0]
        assert target.proteolysis_products == [ProteolysisProduct(2, 103, "chain")]
        assert target.sequence_variations == [
            SequenceVariation(4, 4, "R", "C", "In a colorectal cancer sample."),
        ]

    def test_unknown_modifications_interned(self, h4_result):
        target = h4_result[0]
        modifications = target.one_based_modifications

        assert sorted(modifications) == [2, 6, 9]
        assert [m.id for m in modifications[2]] == ["N-acetylserine", "Phosphoserine"]
        assert modifications[6][0] is modifications[9][0]
        assert modifications[6][0].is_unknown
        assert set(h4_result.unknown_modifications) == {
            "N-acetylserine", "Phosphoserine", "N6-acetyllysine", "Citrulline",
        }
        assert h4_result.unknown_modifications["N6-acetyllysine"] is modifications[6][0]

    def test_decoy_modifications(self, h4_result):
        decoy = h4_result[1]
        # Initiator kept: p -> L - p + 2
        assert sorted(decoy.one_based_modifications) == [96, 99, 103]

    def test_gzipped(self, h4_xml_gz):
        result = load_protein_xml(h4_xml_gz, generate_decoys=True)
        assert len(result) == 4
        assert result[0].full_description == "P62805|H4_HUMAN|Histone H4"
        assert len(result[0].database_references) == 23

    def test_without_decoys(self, h4_xml):
        result = load_protein_xml(h4_xml)
        assert [p.accession for p in result] == ["P62805", "P0C0S8"]

    def test_contaminant_flag(self, h4_xml):
        result = load_protein_xml(h4_xml, generate_decoys=True, is_contaminant=True)
        assert all(p.is_contaminant for p in result)


class TestModificationResolution:
    """Test resolution of "modified residue" features."""

    def test_known_modification(self, write_protein_xml):
        phospho = Modification("Phosphoserine", "UniProt", "S")
        path = write_protein_xml([
            protein_entry("P1", "MPSPTIDE", features=[modified_residue("Phosphoserine; by PKC", 3)]),
        ])
        result = load_protein_xml(path, known_modifications=[phospho])

        assert result[0].one_based_modifications == {3: [phospho]}
        assert result.unknown_modifications == {}

    def test_all_candidates_attached(self, write_protein_xml):
        on_serine = Modification("Phosphoserine", "UniProt", "S")
        on_threonine = Modification("Phosphoserine", "UniProt", "T")
        path = write_protein_xml([
            protein_entry("P1", "MPSPTIDE", features=[modified_residue("Phosphoserine", 3)]),
        ])
        result = load_protein_xml(path, known_modifications=[on_serine, on_threonine])
        assert result[0].one_based_modifications[3] == [on_serine, on_threonine]

    def test_embedded_list(self, write_protein_xml):
        path = write_protein_xml(
            [protein_entry("P1", "MPSPTIDE", features=[modified_residue("Phosphoserine", 3)])],
            modifications=[ptmlist_modification("Phosphoserine", "Serine.", "UniProt", 79.966331)],
        )
        modification = load_protein_xml(path)[0].one_based_modifications[3][0]

        assert modification.id == "Phosphoserine"
        assert modification.target == "Serine."
        assert modification.monoisotopic_mass == pytest.approx(79.966331)
        assert not modification.is_unknown

    def test_caller_record_overrides_embedded(self, write_protein_xml):
        path = write_protein_xml(
            [protein_entry("P1", "MPSPTIDE", features=[modified_residue("Phosphoserine", 3)])],
            modifications=[ptmlist_modification("Phosphoserine", "Serine.", "UniProt", 79.966331)],
        )
        override = Modification("Phosphoserine", "UniProt", "Serine.", monoisotopic_mass=80.0)
        result = load_protein_xml(path, known_modifications=[override])
        assert result[0].one_based_modifications[3] == [override]

    def test_excluded_type_drops_empty_position(self, write_protein_xml):
        artifact = Modification("Oxidation", "Common Artifact", "M")
        path = write_protein_xml([
            protein_entry("P1", "MPSPTIDE", features=[modified_residue("Oxidation", 1)]),
        ])
        result = load_protein_xml(
            path, known_modifications=[artifact], mod_types_to_exclude=["Common Artifact"],
        )
        assert result[0].one_based_modifications == {}

    def test_excluded_type_keeps_occupied_position(self, write_protein_xml):
        artifact = Modification("Oxidation", "Common Artifact", "M")
        path = write_protein_xml([
            protein_entry("P1", "MPSPTIDE", features=[
                modified_residue("Sulfoxide", 1),
                modified_residue("Oxidation", 1),
            ]),
        ])
        result = load_protein_xml(
            path, known_modifications=[artifact], mod_types_to_exclude=["Common Artifact"],
        )
        assert [m.id for m in result[0].one_based_modifications[1]] == ["Sulfoxide"]

    def test_unknown_shared_across_entries(self, write_protein_xml):
        path = write_protein_xml([
            protein_entry("P1", "MPSPTIDE", features=[modified_residue("Hydroxyproline", 2)]),
            protein_entry("P2", "MPEPTIDE", features=[modified_residue("Hydroxyproline", 4)]),
        ])
        result = load_protein_xml(path)
        first = result[0].one_based_modifications[2][0]
        assert result[1].one_based_modifications[4][0] is first
        assert first.modification_type == "unknown"

    def test_missing_position(self, write_protein_xml):
        feature = '<feature type="modified residue" description="Phosphoserine"><location/></feature>'
        path = write_protein_xml([protein_entry("P1", "MPSPTIDE", features=[feature])])
        with pytest.raises(MissingField):
            load_protein_xml(path)


class TestFeatures:
    """Test proteolysis products, variants and entry handling."""

    def test_proteolysis_products_in_order(self, write_protein_xml):
        path = write_protein_xml([protein_entry("P1", "MPEPTIDEKR", features=[
            proteolysis_feature("signal peptide", 1, 3),
            proteolysis_feature("chain", 4, 10),
            proteolysis_feature("propeptide", 4, 5),
            proteolysis_feature("peptide", 6, 8),
            proteolysis_feature("domain", 2, 6),
        ])])
        products = load_protein_xml(path)[0].proteolysis_products
        assert [p.product_type for p in products] == ["signal peptide", "chain", "propeptide", "peptide"]
        assert products[1] == ProteolysisProduct(4, 10, "chain")

    def test_unknown_product_boundary(self, write_protein_xml):
        feature = (
            '<feature type="chain" description="c"><location>'
            '<begin status="unknown"/><end position="8"/></location></feature>'
        )
        path = write_protein_xml([protein_entry("P1", "MPEPTIDEKR", features=[feature])])
        assert load_protein_xml(path)[0].proteolysis_products == [ProteolysisProduct(None, 8, "chain")]

    def test_variant_forms(self, write_protein_xml):
        path = write_protein_xml([protein_entry("P1", "MPEPTIDEKR", features=[
            variant_feature("P", "L", position=2, description="point"),
            variant_feature("TID", "SVE", begin=5, end=7, description="range"),
            variant_feature("E", None, position=3, description="deletion"),
        ])])
        variations = load_protein_xml(path)[0].sequence_variations
        assert variations == [
            SequenceVariation(2, 2, "P", "L", "point"),
            SequenceVariation(5, 7, "TID", "SVE", "range"),
        ]

    def test_feature_state_resets(self, write_protein_xml):
        """A variant without location does not inherit the previous position."""
        unlocated = (
            '<feature type="sequence variant" description="no location">'
            '<original>E</original><variation>Q</variation></feature>'
        )
        path = write_protein_xml([protein_entry("P1", "MPEPTIDEKR", features=[
            variant_feature("P", "L", position=2),
            unlocated,
        ])])
        assert len(load_protein_xml(path)[0].sequence_variations) == 1

    def test_entries_without_sequence_skipped(self, write_protein_xml):
        no_sequence = '<entry><accession>P9</accession><name>NOSEQ</name></entry>'
        path = write_protein_xml([no_sequence, protein_entry("P1", "MPEPTIDE")])
        assert [p.accession for p in load_protein_xml(path)] == ["P1"]

    def test_entry_state_resets(self, write_protein_xml):
        path = write_protein_xml([
            protein_entry("P1", "MPEPTIDE", name="ONE", genes=[[("primary", "G1")]]),
            protein_entry("P2", "MPEPTIDE"),
        ])
        second = load_protein_xml(path)[1]
        assert second.name is None
        assert second.gene_names == []

    def test_organism_names_are_not_genes(self, write_protein_xml):
        path = write_protein_xml([protein_entry("P1", "MPEPTIDE", genes=[[("primary", "G1")]])])
        assert load_protein_xml(path)[0].gene_names == [("primary", "G1")]

    def test_reader_requires_context(self, write_protein_xml):
        path = write_protein_xml([protein_entry("P1", "MPEPTIDE")])
        with pytest.raises(RuntimeError):
            ProteinXmlReader(path).read()


class TestModificationListCache:
    """Test reuse of the embedded modification list."""

    def test_reused_for_same_path(self, write_protein_xml):
        path = write_protein_xml(
            [protein_entry("P1", "MPSPTIDE", features=[modified_residue("Phosphoserine", 3)])],
            modifications=[ptmlist_modification("Phosphoserine", "Serine.", "UniProt", 79.966331)],
        )
        cache = ModificationListCache()
        first = get_ptm_list_from_protein_xml(path, cache)
        assert get_ptm_list_from_protein_xml(path, cache) is first

        # The cached list is used even after the file's list changes
        write_protein_xml(
            [protein_entry("P1", "MPSPTIDE", features=[modified_residue("Phosphoserine", 3)])],
        )
        result = load_protein_xml(path, cache=cache)
        assert not result[0].one_based_modifications[3][0].is_unknown

    def test_replaced_for_other_path(self, write_protein_xml):
        with_list = write_protein_xml(
            [protein_entry("P1", "MPSPTIDE")],
            name="a.xml",
            modifications=[ptmlist_modification("Phosphoserine", "Serine.", "UniProt", 79.966331)],
        )
        without_list = write_protein_xml([protein_entry("P1", "MPSPTIDE")], name="b.xml")
        cache = ModificationListCache()

        assert len(get_ptm_list_from_protein_xml(with_list, cache)) == 1
        assert get_ptm_list_from_protein_xml(without_list, cache) == []
        assert cache.path == without_list

    def test_without_cache(self, h4_xml):
        assert get_ptm_list_from_protein_xml(h4_xml) == []
