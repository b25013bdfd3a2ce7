import pandas as pd

import config

BOM = "\ufeff"


def assets_frame(assets):
    df = pd.DataFrame(assets, columns=list(config.ASSET_COLUMNS))
    return df.rename(columns=config.ASSET_COLUMNS)


def export_csv(assets):
    """UTF-8 CSV with a BOM so spreadsheet apps pick the right encoding."""
    df = pd.DataFrame(assets, columns=config.CSV_FIELDS)
    df.columns = config.CSV_HEADERS
    csv = df.to_csv(index=False, lineterminator="\n")
    return (BOM + csv).encode("utf-8")


def summary(assets, top=5):
    df = pd.DataFrame(assets, columns=["location", "quantity"])
    locations = df["location"].value_counts().head(top)
    return {
        "total_assets": len(df),
        "total_quantity": int(df["quantity"].sum()) if len(df) else 0,
        "top_locations": [(loc, int(n)) for loc, n in locations.items()],
    }


def result_frame(result):
    """One row per catalog asset plus one per unknown code read."""
    rows = []
    for asset in result.found:
        rows.append({"RFID Code": asset["rfid_code"], "Name": asset["name"],
                     "Location": asset["location"], "Status": "Found"})
    for asset in result.missing:
        rows.append({"RFID Code": asset["rfid_code"], "Name": asset["name"],
                     "Location": asset["location"], "Status": "Missing"})
    for code in result.unknown_codes:
        rows.append({"RFID Code": code, "Name": "", "Location": "", "Status": "Unknown"})
    return pd.DataFrame(rows, columns=["RFID Code", "Name", "Location", "Status"])
