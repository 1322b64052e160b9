import numpy as np
import pandas as pd
import pytest

from tier_cohort.data_processing import (
    load_clinical_table,
    load_sample_records,
    load_subtype_table,
    load_subtype_records,
    load_expression_matrix,
    melt_expression,
    expression_observations,
    assign_quartiles,
    classify_gene,
    classify_expression_file,
    quartile_cuts,
    derive_tnbc,
    MalformedInputError,
    DegenerateQuantileError,
    ReceptorStatus,
    ExpressionTier,
    ExpressionObservation,
)
from tier_cohort.data_processing.utils import append_suffix, blank_to_missing, normalize_subtype, load_tsv, numeric_columns


def _long(values, gene="ESR1"):
    return pd.DataFrame({
        "sample_id": [f"S{i}" for i in range(1, len(values) + 1)],
        "gene": gene,
        "expression": values,
    })


def test_load_tsv_encoding(tmp_path):
    data = "\ufeffcol1\tcol2\n1\t2\n"
    file = tmp_path / "bom.tsv"
    file.write_text(data, encoding="utf-8")
    df = load_tsv(str(file))
    assert list(df.columns) == ["col1", "col2"]
    assert df.loc[0, "col1"] == 1


def test_load_tsv_missing_file(tmp_path):
    with pytest.raises(MalformedInputError, match="Could not read"):
        load_tsv(str(tmp_path / "absent.tsv"))


def test_append_suffix_keeps_missing():
    ids = pd.Series(["TCGA-A1-A0SB", " P2 ", np.nan, ""])
    out = append_suffix(ids, "-01A")
    assert out.iloc[0] == "TCGA-A1-A0SB-01A"
    assert out.iloc[1] == "P2-01A"
    assert out.iloc[2:].isna().all()


def test_blank_to_missing():
    out = blank_to_missing(pd.Series(["LumA", "  ", None]))
    assert out.iloc[0] == "LumA"
    assert out.iloc[1:].isna().all()


def test_normalize_subtype_aliases():
    assert normalize_subtype("BRCA_LumA") == "LuminalA"
    assert normalize_subtype("LumB") == "LuminalB"
    assert normalize_subtype("Basal-like") == "Basal"
    assert normalize_subtype("BRCA_Her2") == "Her2"
    assert normalize_subtype("Claudin-low") == "Claudin-low"
    assert pd.isna(normalize_subtype(np.nan))


def test_load_clinical_table(clinical_file):
    clinical = load_clinical_table(clinical_file)
    assert list(clinical.columns) == ["sample_id", "er_status", "pr_status", "her2_status", "tnbc"]
    assert len(clinical) == 9
    row = clinical.set_index("sample_id")
    assert row.loc["P5-01A", "her2_status"] == "Indeterminate"
    assert pd.isna(row.loc["P6-01A", "pr_status"])
    assert row.loc["P3-01A", "tnbc"]
    assert not row.loc["P4-01A", "tnbc"]
    assert not row.loc["P6-01A", "tnbc"]


def test_load_clinical_table_missing_column(tmp_path):
    df = pd.DataFrame({"bcr_patient_barcode": ["P1"], "er_status_by_ihc": ["Positive"]})
    file = tmp_path / "clinical.tsv"
    df.to_csv(file, sep="\t", index=False)
    with pytest.raises(MalformedInputError, match="pr_status_by_ihc"):
        load_clinical_table(str(file))


def test_load_clinical_table_duplicates_keep_first(tmp_path):
    df = pd.DataFrame({
        "id": ["P1", "P1", None],
        "er": ["Positive", "Negative", "Negative"],
        "pr": ["Positive", "Negative", "Negative"],
        "her2": ["Negative", "Negative", "Negative"],
    })
    file = tmp_path / "clinical.tsv"
    df.to_csv(file, sep="\t", index=False)
    columns = {"id": "sample_id", "er": "er_status", "pr": "pr_status", "her2": "her2_status"}
    clinical = load_clinical_table(str(file), columns=columns, sample_suffix="")
    assert clinical["sample_id"].tolist() == ["P1"]
    assert clinical.loc[0, "er_status"] == "Positive"


@pytest.mark.parametrize("er, pr, her2, expected", [
    ("Negative", "Negative", "Negative", True),
    ("Negative", "Negative", "Positive", False),
    ("Positive", "Negative", "Negative", False),
    ("Negative", np.nan, "Negative", False),
    ("Negative", "Negative", "Indeterminate", False),
])
def test_derive_tnbc(er, pr, her2, expected):
    df = pd.DataFrame({"er_status": [er], "pr_status": [pr], "her2_status": [her2]})
    assert bool(derive_tnbc(df).iloc[0]) is expected


def test_load_sample_records(clinical_file):
    records = load_sample_records(clinical_file)
    assert records["P3-01A"].tnbc is True
    assert records["P1-01A"].er_status is ReceptorStatus.POSITIVE
    assert records["P6-01A"].pr_status is None
    assert records["P5-01A"].her2_status is ReceptorStatus.INDETERMINATE


def test_load_subtype_table(subtype_file):
    subtypes = load_subtype_table(subtype_file)
    assert list(subtypes.columns) == ["sample_id", "subtype"]
    lookup = subtypes.set_index("sample_id")["subtype"]
    assert lookup["P1-01A"] == "LuminalA"
    assert lookup["P3-01A"] == "Basal"
    assert pd.isna(lookup["P8-01A"])
    assert "P9-01A" not in lookup.index


def test_load_subtype_records(subtype_file):
    records = load_subtype_records(subtype_file)
    assert records["P2-01A"].subtype == "LuminalB"
    assert records["P8-01A"].subtype is None


def test_load_expression_matrix(expression_file):
    matrix = load_expression_matrix(expression_file)
    assert list(matrix.index) == ["ESR1", "GATA3", "SPARSE"]
    assert "Entrez_Gene_Id" not in matrix.columns
    assert matrix.shape == (3, 8)


def test_load_expression_matrix_non_numeric(tmp_path):
    df = pd.DataFrame({"Hugo_Symbol": ["ESR1"], "S1": ["high"], "S2": [1.0]})
    file = tmp_path / "expr.tsv"
    df.to_csv(file, sep="\t", index=False)
    with pytest.raises(MalformedInputError, match="non-numeric"):
        load_expression_matrix(str(file))


def test_melt_expression_appends_suffix(expression_file):
    long_expr = melt_expression(load_expression_matrix(expression_file))
    assert list(long_expr.columns) == ["sample_id", "gene", "expression"]
    assert len(long_expr) == 3 * 8
    assert set(long_expr["sample_id"]) == {f"P{i}-01A" for i in range(1, 9)}


def test_expression_observations(expression_file):
    long_expr = melt_expression(load_expression_matrix(expression_file))
    assert len(expression_observations(long_expr)) == 8 + 8 + 3

    sparse = expression_observations(long_expr, gene="SPARSE")
    assert [obs.sample_id for obs in sparse] == ["P1-01A", "P2-01A", "P3-01A"]

    esr1 = expression_observations(long_expr, gene="ESR1")
    assert esr1[0] == ExpressionObservation(sample_id="P1-01A", gene="ESR1", value=1.0)
    assert [obs.value for obs in esr1] == [float(v) for v in range(1, 9)]


def test_numeric_columns():
    frame = pd.DataFrame({"sample_id": ["S1", "S2"], "ror_score": [0.1, 0.2], "ror_class": ["Low", "High"]})
    assert numeric_columns(frame) == ["ror_score"]
    assert numeric_columns(frame, ["ror_score"]) == ["ror_score"]
    with pytest.raises(MalformedInputError, match="ror_class"):
        numeric_columns(frame, ["ror_class"])


def test_assign_quartiles_eight_values():
    quartiles = assign_quartiles(pd.Series([1, 2, 3, 4, 5, 6, 7, 8], dtype=float))
    assert quartiles.tolist() == [1, 1, 2, 2, 3, 3, 4, 4]


def test_assign_quartiles_remainder_goes_to_lowest():
    quartiles = assign_quartiles(pd.Series([60, 10, 30, 20, 50, 40], dtype=float))
    assert quartiles.tolist() == [4, 1, 2, 1, 3, 2]


def test_assign_quartiles_tie_at_boundary_goes_higher_in_input_order():
    values = pd.Series([1, 2, 2, 3, 4, 5, 6, 7], dtype=float)
    quartiles = assign_quartiles(values)
    # the second 2 does not fit in quartile 1 and moves up
    assert quartiles.iloc[1] == 1
    assert quartiles.iloc[2] == 2


def test_assign_quartiles_skips_missing():
    quartiles = assign_quartiles(pd.Series([4.0, np.nan, 1.0, 3.0, 2.0]))
    assert list(quartiles.index) == [0, 2, 3, 4]
    assert quartiles.tolist() == [4, 1, 3, 2]


@pytest.mark.parametrize("values", [[1.0, 2.0, 3.0], [1.0, 2.0, 3.0, np.nan], []])
def test_assign_quartiles_degenerate(values):
    with pytest.raises(DegenerateQuantileError):
        assign_quartiles(pd.Series(values, dtype=float))


@pytest.mark.parametrize("n", [4, 5, 9, 10, 11, 13, 100, 101])
def test_tiers_partition_samples(n):
    rng = np.random.default_rng(n)
    values = rng.permutation(np.arange(n, dtype=float))
    classified = classify_gene(_long(values), "ESR1")
    counts = classified["tier"].value_counts()

    assert len(classified) == n
    assert classified["sample_id"].is_unique
    assert abs(counts.get("Low", 0) - n / 4) <= 1
    assert abs(counts.get("High", 0) - n / 4) <= 1
    assert abs(counts.get("Mid", 0) - n / 2) <= 2


def test_classify_gene_end_to_end_scenario():
    classified = classify_gene(_long([5, 1, 8, 3, 2, 7, 4, 6]), "ESR1")
    tiers = dict(zip(classified["expression"], classified["tier"]))
    assert {v for v, t in tiers.items() if t == "Low"} == {1, 2}
    assert {v for v, t in tiers.items() if t == "Mid"} == {3, 4, 5, 6}
    assert {v for v, t in tiers.items() if t == "High"} == {7, 8}


def test_classify_gene_is_idempotent():
    long_expr = _long([0.3, -1.2, 2.2, 0.3, 0.3, 1.5, -0.4, 0.9, 0.0])
    first = classify_gene(long_expr, "ESR1")
    second = classify_gene(long_expr, "ESR1")
    pd.testing.assert_frame_equal(first, second)


def test_classify_gene_unknown_gene():
    with pytest.raises(MalformedInputError, match="TP53"):
        classify_gene(_long([1, 2, 3, 4]), "TP53")


def test_classify_gene_duplicate_rows_keep_first():
    long_expr = pd.concat([_long([1, 2, 3, 4]), _long([40, 30, 20, 10])], ignore_index=True)
    classified = classify_gene(long_expr, "ESR1")
    assert classified["expression"].tolist() == [1, 2, 3, 4]


def test_classify_expression_file(expression_file):
    classified = classify_expression_file(expression_file, "ESR1")
    lookup = classified.set_index("sample_id")["tier"]
    assert lookup["P1-01A"] == ExpressionTier.LOW.value
    assert lookup["P4-01A"] == "Mid"
    assert lookup["P8-01A"] == "High"


def test_classify_expression_file_sparse_gene(expression_file):
    with pytest.raises(DegenerateQuantileError):
        classify_expression_file(expression_file, "SPARSE")


def test_classify_expression_file_missing_gene(expression_file):
    with pytest.raises(MalformedInputError):
        classify_expression_file(expression_file, "TP53")


def test_quartile_cuts():
    classified = classify_gene(_long([1, 2, 2, 3, 4, 5, 6, 7]), "ESR1")
    cuts = quartile_cuts(classified)
    assert cuts["quartile"].tolist() == [1, 2, 3, 4]
    assert cuts["tier"].tolist() == ["Low", "Mid", "Mid", "High"]
    assert cuts["cut"].tolist() == [2, 3, 5, 7]
    assert cuts["n_samples"].tolist() == [2, 2, 2, 2]


def test_expression_tier_from_quartile():
    assert ExpressionTier.from_quartile(1) is ExpressionTier.LOW
    assert ExpressionTier.from_quartile(2) is ExpressionTier.MID
    assert ExpressionTier.from_quartile(3) is ExpressionTier.MID
    assert ExpressionTier.from_quartile(4) is ExpressionTier.HIGH
    with pytest.raises(ValueError):
        ExpressionTier.from_quartile(5)


def test_receptor_status_parse():
    assert ReceptorStatus.parse("Negative") is ReceptorStatus.NEGATIVE
    assert ReceptorStatus.parse("Equivocal") is ReceptorStatus.INDETERMINATE
    assert ReceptorStatus.parse("negative") is ReceptorStatus.INDETERMINATE
    assert ReceptorStatus.parse(np.nan) is None
