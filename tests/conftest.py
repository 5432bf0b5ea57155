"""Pytest configuration for proteoio tests.

Provides builders that write small mzML, protein XML and FASTA documents
into ``tmp_path``, plus the static UniProt fixture under ``tests/data``.
"""

import gzip
import shutil
from pathlib import Path

import pytest

from proteoio.io.binary import encode_base64_array


DATA_DIR = Path(__file__).parent / "data"

MZML_NAMESPACE = "http://psi.hupo.org/ms/mzml"
UNIPROT_NAMESPACE = "http://uniprot.org/uniprot"

H4_SEQUENCE = (
    "MSGRGKGGKGLGKGGAKRHRKVLRDNIQGITKPAIRRLARRGGVKRISGLIYEETRGVLKVFLENVIRDAVTYTEHAKRKTVTAMDVVYALKRQGRTLYGFGG"
)


# -----------------------------------------------------------------------------
# mzML builders
# -----------------------------------------------------------------------------

def cv(accession, name, value="", unit_name=None, unit_accession=None):
    unit = ""
    if unit_name is not None:
        unit = f' unitCvRef="UO" unitAccession="{unit_accession}" unitName="{unit_name}"'
    return f'<cvParam cvRef="MS" accession="{accession}" name="{name}" value="{value}"{unit}/>'


def binary_array(values, role_accession, role_name, bit_width=64, compressed=True, encoded=None):
    """A <binaryDataArray>; ``encoded`` replaces the base64 payload verbatim."""
    if encoded is None:
        encoded = encode_base64_array(values, compressed, bit_width)
    params = [
        cv("MS:1000523", "64-bit float") if bit_width == 64 else cv("MS:1000521", "32-bit float"),
        cv("MS:1000574", "zlib compression") if compressed else cv("MS:1000576", "no compression"),
        cv(role_accession, role_name),
    ]
    return (
        f'<binaryDataArray encodedLength="{len(encoded)}">'
        f'{"".join(params)}<binary>{encoded}</binary></binaryDataArray>'
    )


def precursor_xml(
    spectrum_ref="scan=1",
    selected_mz=445.12,
    charge=2,
    intensity=1.5e5,
    target_mz=445.12,
    lower_offset=1.0,
    upper_offset=1.0,
    activation="MS:1000422",
):
    """A <precursorList> with one precursor; pass None to omit a value."""
    ref = f' spectrumRef="{spectrum_ref}"' if spectrum_ref is not None else ""

    window = []
    if target_mz is not None:
        window.append(cv("MS:1000827", "isolation window target m/z", target_mz))
    if lower_offset is not None:
        window.append(cv("MS:1000828", "isolation window lower offset", lower_offset))
    if upper_offset is not None:
        window.append(cv("MS:1000829", "isolation window upper offset", upper_offset))

    ion = [cv("MS:1000744", "selected ion m/z", selected_mz)]
    if charge is not None:
        ion.append(cv("MS:1000041", "charge state", charge))
    if intensity is not None:
        ion.append(cv("MS:1000042", "peak intensity", intensity))

    activation_params = [cv("MS:1000045", "collision energy", 30.0)]
    if activation is not None:
        activation_params.append(cv(activation, "dissociation method"))

    return (
        f'<precursorList count="1"><precursor{ref}>'
        f'<isolationWindow>{"".join(window)}</isolationWindow>'
        f'<selectedIonList count="1"><selectedIon>{"".join(ion)}</selectedIon></selectedIonList>'
        f'<activation>{"".join(activation_params)}</activation>'
        f'</precursor></precursorList>'
    )


def spectrum_xml(
    index,
    native_id,
    ms_level=1,
    mz=(100.0, 200.0, 300.0),
    intensity=(10.0, 20.0, 30.0),
    retention_time=1.5,
    rt_unit="minute",
    filter_string="FTMS + p NSI Full ms [350.00-1800.00]",
    injection_time=25.0,
    scan_window=(350.0, 1800.0),
    total_ion_current=60.0,
    polarity="MS:1000130",
    centroid=True,
    bit_width=64,
    compressed=True,
    precursor=None,
    user_params=(),
    param_group=None,
    include_ms_level=True,
    mz_encoded=None,
):
    params = []
    if param_group is not None:
        params.append(f'<referenceableParamGroupRef ref="{param_group}"/>')
    if include_ms_level:
        params.append(cv("MS:1000511", "ms level", ms_level))
    if centroid is not None:
        params.append(
            cv("MS:1000127", "centroid spectrum") if centroid else cv("MS:1000128", "profile spectrum")
        )
    if polarity is not None:
        params.append(cv(polarity, "scan polarity"))
    if total_ion_current is not None:
        params.append(cv("MS:1000285", "total ion current", total_ion_current))

    unit_accession = "UO:0000010" if rt_unit == "second" else "UO:0000031"
    scan_params = [cv("MS:1000016", "scan start time", retention_time, rt_unit, unit_accession)]
    if filter_string is not None:
        scan_params.append(cv("MS:1000512", "filter string", filter_string))
    if injection_time is not None:
        scan_params.append(cv("MS:1000927", "ion injection time", injection_time, "millisecond", "UO:0000028"))
    for name, value in user_params:
        scan_params.append(f'<userParam name="{name}" value="{value}" type="xsd:float"/>')
    window = ""
    if scan_window is not None:
        window = (
            '<scanWindowList count="1"><scanWindow>'
            f'{cv("MS:1000501", "scan window lower limit", scan_window[0])}'
            f'{cv("MS:1000500", "scan window upper limit", scan_window[1])}'
            '</scanWindow></scanWindowList>'
        )

    arrays = [
        binary_array(mz, "MS:1000514", "m/z array", bit_width, compressed, encoded=mz_encoded),
        binary_array(intensity, "MS:1000515", "intensity array", bit_width, compressed),
    ]

    return (
        f'<spectrum index="{index}" id="{native_id}" defaultArrayLength="{len(intensity)}">'
        f'{"".join(params)}'
        f'<scanList count="1">{cv("MS:1000795", "no combination")}'
        f'<scan>{"".join(scan_params)}{window}</scan></scanList>'
        f'{precursor or ""}'
        f'<binaryDataArrayList count="2">{"".join(arrays)}</binaryDataArrayList>'
        f'</spectrum>'
    )


def mzml_document(spectra, indexed=True, analyzer="MS:1000484", param_groups=None):
    """Serialize spectra (dicts of ``spectrum_xml`` keyword arguments)."""
    body = "".join(
        spectrum_xml(index, **spectrum) for index, spectrum in enumerate(spectra)
    )
    groups = ""
    if param_groups:
        groups = (
            f'<referenceableParamGroupList count="{len(param_groups)}">'
            + "".join(
                f'<referenceableParamGroup id="{group_id}">{"".join(params)}</referenceableParamGroup>'
                for group_id, params in param_groups.items()
            )
            + '</referenceableParamGroupList>'
        )
    instrument = ""
    if analyzer is not None:
        instrument = (
            '<instrumentConfigurationList count="1"><instrumentConfiguration id="IC1">'
            '<componentList count="1">'
            f'<analyzer order="1">{cv(analyzer, "mass analyzer")}</analyzer>'
            '</componentList></instrumentConfiguration></instrumentConfigurationList>'
        )
    mzml = (
        f'<mzML xmlns="{MZML_NAMESPACE}" id="test" version="1.1.0">'
        f'{groups}{instrument}'
        f'<run id="test_run" defaultInstrumentConfigurationRef="IC1">'
        f'<spectrumList count="{len(spectra)}">{body}</spectrumList>'
        f'</run></mzML>'
    )
    if indexed:
        mzml = (
            f'<indexedmzML xmlns="{MZML_NAMESPACE}">{mzml}'
            '<indexList count="1"><index name="spectrum"/></indexList>'
            '<indexListOffset>0</indexListOffset>'
            '</indexedmzML>'
        )
    return '<?xml version="1.0" encoding="utf-8"?>\n' + mzml


def write_text(path: Path, text: str) -> Path:
    if path.name.endswith(".gz"):
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(text)
    else:
        path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def write_mzml(tmp_path):
    """Write spectra to an mzML file; returns its path."""
    def _write(spectra, name="run.mzML", **kwargs):
        return write_text(tmp_path / name, mzml_document(spectra, **kwargs))
    return _write


@pytest.fixture
def two_scan_spectra():
    """An MS1 survey scan followed by one HCD MS2 scan of it."""
    return [
        dict(native_id="scan=1", ms_level=1, retention_time=1.5),
        dict(
            native_id="scan=2",
            ms_level=2,
            retention_time=1.6,
            mz=(150.1, 250.2),
            intensity=(5.0, 7.0),
            filter_string="ITMS + c NSI d Full ms2 445.12@hcd30.00 [110.00-900.00]",
            precursor=precursor_xml(spectrum_ref="scan=1"),
        ),
    ]


@pytest.fixture
def two_scan_mzml(write_mzml, two_scan_spectra):
    return write_mzml(two_scan_spectra)


# -----------------------------------------------------------------------------
# Protein database builders
# -----------------------------------------------------------------------------

def protein_entry(
    accession,
    sequence,
    name=None,
    full_name=None,
    genes=(),
    features=(),
    references=(),
):
    """A UniProt <entry>; ``features`` and ``references`` are XML strings."""
    parts = [f"<accession>{accession}</accession>"]
    if name is not None:
        parts.append(f"<name>{name}</name>")
    if full_name is not None:
        parts.append(f"<protein><recommendedName><fullName>{full_name}</fullName></recommendedName></protein>")
    for gene in genes:
        parts.append(
            "<gene>"
            + "".join(f'<name type="{gene_type}">{gene_name}</name>' for gene_type, gene_name in gene)
            + "</gene>"
        )
    parts.append('<organism><name type="scientific">Homo sapiens</name></organism>')
    parts.extend(references)
    parts.extend(features)
    parts.append(f'<sequence length="{len(sequence)}" mass="0">{sequence}</sequence>')
    return '<entry dataset="Swiss-Prot">' + "".join(parts) + "</entry>"


def modified_residue(description, position):
    return (
        f'<feature type="modified residue" description="{description}">'
        f'<location><position position="{position}"/></location></feature>'
    )


def proteolysis_feature(feature_type, begin, end):
    return (
        f'<feature type="{feature_type}" description="{feature_type}">'
        f'<location><begin position="{begin}"/><end position="{end}"/></location></feature>'
    )


def variant_feature(original, variation, position=None, begin=None, end=None, description="variant"):
    if position is not None:
        location = f'<position position="{position}"/>'
    else:
        location = f'<begin position="{begin}"/><end position="{end}"/>'
    variation_xml = f"<variation>{variation}</variation>" if variation is not None else "<variation/>"
    return (
        f'<feature type="sequence variant" description="{description}">'
        f"<original>{original}</original>{variation_xml}"
        f"<location>{location}</location></feature>"
    )


def ptmlist_modification(mod_id, target, mod_type, mass, position="Anywhere."):
    return (
        "<modification>\n"
        f"ID   {mod_id}\n"
        "FT   MOD_RES\n"
        f"TG   {target}\n"
        f"PP   {position}\n"
        f"MM   {mass}\n"
        f"MT   {mod_type}\n"
        "//\n"
        "</modification>"
    )


def protein_document(entries, modifications=()):
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<mzLibProteinDb xmlns="{UNIPROT_NAMESPACE}">'
        + "".join(modifications)
        + "".join(entries)
        + "</mzLibProteinDb>"
    )


@pytest.fixture
def write_protein_xml(tmp_path):
    """Write entries (and an embedded modification list) to a protein XML."""
    def _write(entries, name="proteins.xml", modifications=()):
        return write_text(tmp_path / name, protein_document(entries, modifications))
    return _write


@pytest.fixture
def write_fasta(tmp_path):
    def _write(text, name="proteins.fasta"):
        return write_text(tmp_path / name, text)
    return _write


@pytest.fixture
def h4_xml():
    """UniProt record of human histone H4 (P62805)."""
    return DATA_DIR / "xml.xml"


@pytest.fixture
def h4_xml_gz(tmp_path, h4_xml):
    path = tmp_path / "xml.xml.gz"
    with open(h4_xml, "rb") as source, gzip.open(path, "wb") as target:
        shutil.copyfileobj(source, target)
    return path
