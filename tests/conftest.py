# tests/conftest.py

from datetime import date

import pytest

from sales_dash.models import Record


@pytest.fixture
def raw_rows():
    """A small workbook export with one unusable row (index 3)."""
    return [
        {
            "NO": 1,
            "FİRMA ÜNVANI": " Acme Ltd ",
            "FAT. TARİHİ": "05.03.2024",
            "FATURA NO": "A-001",
            "BÖLGE": "Marmara",
            "İL": "İstanbul",
            "CİNSİ": "Material",
            "DÖVİZ CİNSİ": "EUR",
            "KDV HARİÇ TL": "35.000,00",
            "K.D.V.": "7.000,00",
            "KDV HARİÇ EURO KARŞILIĞI": "1.000,00",
            "KDV HARİÇ (EURO)": "1.000,00",
            "KDV HARİÇ (USD)": "",
            "KDV HARİÇ (GBP)": "",
            "SATIŞ TEMSİLCİSİ": "Ayşe",
        },
        {
            "NO": 2,
            "FİRMA ÜNVANI": "Beta AŞ",
            "FAT. TARİHİ": 45357,
            "FATURA NO": 1002,
            "BÖLGE": "Ege",
            "İL": "İzmir",
            "CİNSİ": "Material",
            "DÖVİZ CİNSİ": "USD",
            "KDV HARİÇ TL": "",
            "K.D.V.": "",
            "KDV HARİÇ EURO KARŞILIĞI": "",
            "KDV HARİÇ (EURO)": "",
            "KDV HARİÇ (USD)": "1.080,00",
            "KDV HARİÇ (GBP)": "",
            "SATIŞ TEMSİLCİSİ": "Mehmet",
        },
        {
            "NO": 3,
            "FİRMA ÜNVANI": "Gamma Yapı",
            "FAT. TARİHİ": "10.03.2024",
            "FATURA NO": "A-003",
            "BÖLGE": "Marmara",
            "İL": "Bursa",
            "CİNSİ": "Material",
            "DÖVİZ CİNSİ": "TL",
            "KDV HARİÇ TL": "70.000",
            "K.D.V.": "14.000",
            "KDV HARİÇ EURO KARŞILIĞI": "",
            "KDV HARİÇ (EURO)": "",
            "KDV HARİÇ (USD)": "",
            "KDV HARİÇ (GBP)": "",
            "SATIŞ TEMSİLCİSİ": "Ayşe",
        },
        {
            "NO": 4,
            "FİRMA ÜNVANI": "Broken Row",
            "FAT. TARİHİ": "2024-03-11",
            "FATURA NO": "A-004",
            "BÖLGE": "Marmara",
            "İL": "Bursa",
            "CİNSİ": "Material",
            "DÖVİZ CİNSİ": "TL",
            "KDV HARİÇ TL": "1.000",
            "K.D.V.": "",
            "KDV HARİÇ EURO KARŞILIĞI": "",
            "KDV HARİÇ (EURO)": "",
            "KDV HARİÇ (USD)": "",
            "KDV HARİÇ (GBP)": "",
            "SATIŞ TEMSİLCİSİ": "Ayşe",
        },
        {
            "NO": 5,
            "FİRMA ÜNVANI": "delta servis",
            "FAT. TARİHİ": "20.03.2024",
            "FATURA NO": "A-005",
            "BÖLGE": "",
            "İL": "",
            "CİNSİ": "Servis",
            "DÖVİZ CİNSİ": "GBP",
            "KDV HARİÇ TL": "",
            "K.D.V.": "",
            "KDV HARİÇ EURO KARŞILIĞI": "",
            "KDV HARİÇ (EURO)": "",
            "KDV HARİÇ (USD)": "",
            "KDV HARİÇ (GBP)": "850",
            "SATIŞ TEMSİLCİSİ": "",
        },
    ]


def make_record(record_id, day, manager="A", net_eur=0.0, firm="Firm", **kwargs):
    """Build a canonical record directly, bypassing normalisation."""
    return Record(id=record_id, date=day, manager=manager, firm=firm, net_eur=net_eur, **kwargs)


@pytest.fixture
def march_records():
    return [
        make_record(0, date(2024, 3, 1), manager="A", net_eur=100.0, firm="Alpha"),
        make_record(1, date(2024, 3, 3), manager="B", net_eur=50.0, firm="Beta"),
        make_record(2, date(2024, 3, 3), manager="A", net_eur=25.0, firm="Alpha"),
        make_record(3, date(2024, 3, 5), manager="C", net_eur=50.0, firm="Gamma"),
    ]


@pytest.fixture
def record_factory():
    return make_record
