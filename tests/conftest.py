import os
import numpy as np
import pandas as pd
import pytest


PATIENTS = [f"P{i}" for i in range(1, 9)]


@pytest.fixture
def clinical_file(tmp_path) -> str:
    """
    TCGA-style clinical table. P9 has no expression or subtype entry.
    """
    df = pd.DataFrame({
        "bcr_patient_barcode": PATIENTS + ["P9"],
        "gender": ["FEMALE"] * 9,
        "er_status_by_ihc": ["Positive", "Positive", "Negative", "Negative", "Positive",
                             "Positive", "Positive", "Positive", "Negative"],
        "pr_status_by_ihc": ["Positive", "Negative", "Negative", "Negative", "Positive",
                             "[Not Evaluated]", "Positive", "Positive", "Negative"],
        "her2_status_by_ihc": ["Negative", "Negative", "Negative", "Positive", "Equivocal",
                               "Negative", "Negative", "Negative", "Negative"],
    })
    path = tmp_path / "clinical.tsv"
    df.to_csv(path, sep="\t", index=False)
    return str(path)


@pytest.fixture
def subtype_file(tmp_path) -> str:
    """
    cBioPortal-style patient table with a four line header block.
    P8 has a blank subtype and P10 has no clinical or expression data.
    """
    lines = [
        "#Patient Identifier\tSubtype",
        "#Identifier to uniquely specify a patient.\tSubtype",
        "#STRING\tSTRING",
        "#1\t1",
        "PATIENT_ID\tSUBTYPE",
        "P1\tBRCA_LumA",
        "P2\tBRCA_LumB",
        "P3\tBRCA_Basal",
        "P4\tBRCA_Her2",
        "P5\tBRCA_LumA",
        "P6\tBRCA_Normal",
        "P7\tBRCA_LumA",
        "P8\t",
        "P10\tBRCA_LumB",
    ]
    path = tmp_path / "subtype.tsv"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


@pytest.fixture
def expression_file(tmp_path) -> str:
    """
    Gene x sample z-score matrix; ESR1 runs 1..8 across P1..P8.
    SPARSE only has three values and one row has no gene symbol.
    """
    samples = [f"{p}-01" for p in PATIENTS]
    rows = [
        ["ESR1", 2099] + [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0],
        ["GATA3", 2625] + [0.5, -0.2, 1.1, 0.3, -1.4, 2.2, 0.0, 0.9],
        [np.nan, 1] + [9.0] * 8,
        ["SPARSE", 3] + [1.0, 2.0, 3.0] + [np.nan] * 5,
    ]
    df = pd.DataFrame(rows, columns=["Hugo_Symbol", "Entrez_Gene_Id"] + samples)
    path = tmp_path / "expression.tsv"
    df.to_csv(path, sep="\t", index=False)
    return str(path)


@pytest.fixture
def score_file(tmp_path) -> str:
    df = pd.DataFrame({
        "SAMPLE_ID": [f"{p}-01A" for p in PATIENTS],
        "proliferation": [0.1, 0.3, 0.2, 0.5, 0.6, 0.4, 0.9, 1.0],
        "ror_score": [10, 20, 15, 35, 40, 30, 60, 70],
    })
    path = tmp_path / "scores.tsv"
    df.to_csv(path, sep="\t", index=False)
    return str(path)


@pytest.fixture
def de_results_file(tmp_path) -> str:
    """DESeq2 results written from R: the gene column has no header."""
    lines = [
        "\tbaseMean\tlog2FoldChange\tlfcSE\tstat\tpvalue\tpadj",
        "GENE_A\t100\t2.5\t0.3\t8.3\t1e-10\t1e-8",
        "GENE_B\t80\t-1.8\t0.4\t-4.5\t1e-5\t1e-3",
        "GENE_C\t50\t0.2\t0.5\t0.4\t0.6\t0.8",
        "GENE_D\t20\t3.0\t1.5\t2.0\t0.04\tNA",
    ]
    path = tmp_path / "de_results.tsv"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


@pytest.fixture
def output_dir(tmp_path) -> str:
    return os.path.join(str(tmp_path), "output")
