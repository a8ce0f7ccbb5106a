# 01_concern_vs_share_price.py
import marimo

__generated_with = "0.1.0"
app = marimo.App(width="medium")

@app.cell
def __():
    import marimo as mo
    from pathlib import Path
    import pandas as pd
    import numpy as np
    import logging

    from greenconcern.data.loaders import DataLoader
    from greenconcern.pipeline import ConcernAnalysis, ReportSpec
    from greenconcern.utils.config_manager import ConfigManager
    from greenconcern.utils.logging_config import setup_logging

    project_root = Path(__file__).parent.parent.resolve()
    logger = logging.getLogger("notebook_01")

    mo.md("# Environmental Concern vs Share Prices")
    return ConcernAnalysis, ConfigManager, DataLoader, Path, ReportSpec, logger, logging, mo, np, pd, project_root, setup_logging


@app.cell
def __(mo):
    mo.md("## 1. Configuration")
    return


@app.cell
def __(ConfigManager, project_root, setup_logging):
    manager = ConfigManager(config_dir=str(project_root / "config"))
    raw_config = manager.load_config("analysis_config.yaml", "analysis_config_schema.json")
    config = manager.load_analysis_config()
    setup_logging(config.log_level, config.log_dir)

    DATA_CONFIG = raw_config["data"]
    print(f"Analysis settings: {config.to_dict()}")
    return DATA_CONFIG, config, manager, raw_config


@app.cell
def __(mo):
    mo.md("## 2. Load Raw Data")
    return


@app.cell
def __(DATA_CONFIG, DataLoader, Path, project_root):
    loader = DataLoader()
    raw_path = project_root / DATA_CONFIG["raw_data_path"]
    price_schema = {"Date": "datetime64[ns]", "Close": "float64"}

    # Search-interest exports: one CSV per keyword with Month,hits columns
    keywords = tuple(
        loader.load_csv(
            str(raw_path / f"{kw.replace(' ', '_')}.csv"), "Month", "hits", name=kw, date_format="%Y-%m"
        )
        for kw in DATA_CONFIG["keywords"]
    )
    fuel = loader.load_csv(str(raw_path / "fuel_prices.csv"), "Date", "ULSP", name="fuel")
    market_index = loader.load_csv(
        str(raw_path / "ftse100.csv"), "Date", "Close", name="index", schema=price_schema
    )
    shares = {
        ticker: loader.load_csv(
            str(raw_path / f"{ticker}.csv"), "Date", "Close", name=ticker, schema=price_schema
        )
        for ticker in DATA_CONFIG["tickers"]
    }

    print(f"Loaded {len(keywords)} keyword series, {len(shares)} share series")
    print(f"Fuel: {len(fuel)} weekly rows, index: {len(market_index)} daily rows")
    return fuel, keywords, loader, market_index, price_schema, raw_path, shares


@app.cell
def __(mo):
    mo.md("## 3. Seasonal Decomposition of Search Interest")
    return


@app.cell
def __(ConcernAnalysis, config, keywords, pd):
    analysis = ConcernAnalysis(config)
    decomposed = analysis.decompose_keywords(keywords)

    seasonal_table = pd.DataFrame(
        {d.name: d.seasonal_index for d in decomposed},
        index=[f"month_{i + 1}" for i in range(config.period)],
    )
    seasonal_table
    return analysis, decomposed, seasonal_table


@app.cell
def __(decomposed, pd):
    trends = pd.concat({d.name: d.trend for d in decomposed}, axis=1)
    trends.dropna().describe()
    return trends,


@app.cell
def __(mo):
    mo.md("## 4. Degree Selection per Share")
    return


@app.cell
def __(ReportSpec, analysis, fuel, keywords, market_index, shares):
    specs = [
        ReportSpec(
            name=ticker,
            target=series,
            keywords=keywords,
            covariates={"fuel": fuel, "index": market_index},
        )
        for ticker, series in shares.items()
    ]
    results = analysis.run_reports(specs)

    for _result in results:
        if _result.succeeded:
            print(
                f"{_result.name}: degree {_result.selection.selected_degree}, "
                f"test MSE {_result.selection.test_mse:.4f}"
            )
        else:
            print(f"{_result.name}: skipped ({_result.failure.exception_type})")
    return results, specs


@app.cell
def __(pd, results):
    cv_curves = pd.DataFrame({
        r.name: r.selection.cross_validation.mean_mse for r in results if r.succeeded
    })
    cv_curves
    return cv_curves,


@app.cell
def __(mo):
    mo.md("## 5. Response Transforms")
    return


@app.cell
def __(analysis, config, results, specs):
    from dataclasses import replace
    from greenconcern.models.selection import ModelSelector

    # Positive transforms need the share price on its original scale
    selector = ModelSelector.from_config(config)
    comparisons = {}
    for _spec, _result in zip(specs, results):
        if not _result.succeeded:
            continue
        _, _raw_frame = analysis.build_frame(replace(_spec, transform="log"))
        comparisons[_spec.name] = selector.compare_transforms(
            _raw_frame, ["identity", "inverse_square", "log"]
        )
    comparisons
    return ModelSelector, comparisons, replace, selector


@app.cell
def __(mo):
    mo.md("## 6. Save Reports")
    return


@app.cell
def __(analysis, results):
    report_path = analysis.save_reports(results)
    print(f"Reports written to {report_path}")
    return report_path,


if __name__ == "__main__":
    app.run()
