"""
Gallery of named chart recipes built on the bundled sample data.

Each recipe is a function of `PlotSettings` returning an unrendered `Plot`;
the CLI renders and saves them. Recipes marked ``remote`` fetch their data
over HTTP (the souvenir-sales series) and are skipped by ``--offline``.

Examples:
    >>> from plotgram.lab.gallery import GALLERY
    >>> "iris_density" in GALLERY
    True
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from plotgram.io import PlotSettings, ReshapeDirective, load_dataset, load_edges, load_series
from plotgram.viz import Plot, corrplot, network_plot

__all__ = ["Recipe", "GALLERY", "recipe_names", "build"]

IRIS_ID = ("Species",)
MTCARS_NUMERIC = ("mpg", "disp", "hp", "drat", "wt", "qsec")


@dataclass(frozen=True)
class Recipe:
    name: str
    description: str
    build: Callable[[PlotSettings], Plot]
    remote: bool = False


def _iris_tall(settings: PlotSettings):
    return load_dataset("iris", reshape=ReshapeDirective(id_columns=IRIS_ID), settings=settings)


def iris_scatter(settings: PlotSettings) -> Plot:
    iris = load_dataset("iris", settings=settings)
    return (
        Plot(iris, x="Sepal.Length", y="Sepal.Width", color="Species")
        .geom_point(size=60, alpha=0.8)
        .scale_color_brewer("Dark2", type="qual")
        .labs(title="Iris sepals", x="Sepal length (cm)", y="Sepal width (cm)")
    )


def iris_density(settings: PlotSettings) -> Plot:
    return (
        Plot(_iris_tall(settings), x="value", fill="Species")
        .geom_density(alpha=0.5)
        .facet_wrap("variable", ncol=2, scales="free")
        .scale_fill_brewer(2, type="qual")
        .labs(title="Iris measurements", subtitle="Kernel density by species", x="cm")
    )


def iris_boxplot(settings: PlotSettings) -> Plot:
    return (
        Plot(_iris_tall(settings), x="Species", y="value", fill="Species")
        .geom_boxplot()
        .facet_wrap("variable", ncol=4, scales="free_y")
        .scale_fill_brewer("Set2", type="qual")
        .labs(title="Iris measurements by species", y="cm")
        .theme_bw(legend_position="none")
    )


def iris_violin(settings: PlotSettings) -> Plot:
    iris = load_dataset("iris", settings=settings)
    return (
        Plot(iris, x="Species", y="Petal.Length", fill="Species")
        .geom_violin(alpha=0.7)
        .scale_fill_brewer("Pastel1", type="qual")
        .labs(title="Petal length", y="cm")
        .theme_bw()
    )


def iris_means(settings: PlotSettings) -> Plot:
    return (
        Plot(_iris_tall(settings), x="variable", y="value", fill="Species")
        .geom_bar(stat="summary_mean", position="dodge")
        .scale_fill_brewer("Set1", type="qual")
        .labs(title="Mean iris measurements", x="", y="mean (cm)")
    )


def mtcars_smooth(settings: PlotSettings) -> Plot:
    mtcars = load_dataset("mtcars", categorical=("cyl",), settings=settings)
    return (
        Plot(mtcars, x="wt", y="mpg", color="cyl")
        .geom_point(size=40)
        .geom_smooth(method="lm")
        .labs(title="Fuel economy against weight", x="weight (1000 lbs)", color="cylinders")
    )


def mtcars_corrplot(settings: PlotSettings) -> Plot:
    mtcars = load_dataset("mtcars", settings=settings)
    return corrplot(mtcars, list(MTCARS_NUMERIC)).labs(title="mtcars correlations")


def sales_series(settings: PlotSettings) -> Plot:
    sales = load_series(settings.sales_url, start=(1987, 1), frequency=12, value_name="sales", name="sales", settings=settings)
    return (
        Plot(sales, x="date", y="sales")
        .geom_line()
        .geom_point(size=15)
        .scale_y_log10()
        .labs(title="Souvenir shop sales", caption="Monthly, Queensland 1987-1993", x="", y="sales (log scale)")
    )


def state_income_map(settings: PlotSettings) -> Plot:
    income = load_dataset("state_income", settings=settings)
    return (
        Plot(income, map_id="state", fill="median_income")
        .geom_map()
        .scale_fill_brewer("YlGnBu")
        .labs(title="Median household income by state", fill="USD")
        .theme_minimal(grid=False)
    )


def state_income_bars(settings: PlotSettings) -> Plot:
    income = load_dataset("state_income", settings=settings)
    return (
        Plot(income, x="region", y="median_income", fill="region")
        .geom_bar(stat="summary_mean")
        .scale_fill_brewer("Set2", type="qual")
        .labs(title="Mean state median income by region", x="", y="USD")
        .theme_classic(legend_position="none")
    )


def social_network(settings: PlotSettings) -> Plot:
    edges = load_edges("social_network", settings=settings)
    return network_plot(edges, edge_color="type").labs(title="Who talks to whom")


GALLERY: dict[str, Recipe] = {
    r.name: r
    for r in (
        Recipe("iris_scatter", "Iris sepal width against length, coloured by species", iris_scatter),
        Recipe("iris_density", "Faceted iris densities (melted, free scales)", iris_density),
        Recipe("iris_boxplot", "Iris measurement boxplots by species", iris_boxplot),
        Recipe("iris_violin", "Iris petal length violins", iris_violin),
        Recipe("iris_means", "Dodged mean bars per iris measurement", iris_means),
        Recipe("mtcars_smooth", "mtcars mpg ~ weight with per-cylinder linear fits", mtcars_smooth),
        Recipe("mtcars_corrplot", "Clustered mtcars correlation heatmap", mtcars_corrplot),
        Recipe("sales_series", "Souvenir sales time series on a log scale", sales_series, remote=True),
        Recipe("state_income_map", "US median income choropleth", state_income_map),
        Recipe("state_income_bars", "Mean state income by census region", state_income_bars),
        Recipe("social_network", "Small social network with communities", social_network),
    )
}


def recipe_names(*, offline: bool = False) -> list[str]:
    return [n for n, r in GALLERY.items() if not (offline and r.remote)]


def build(name: str, settings: PlotSettings | None = None) -> Plot:
    """
    Build one recipe by name.

    Raises:
        KeyError: Unknown recipe name.
    """
    try:
        recipe = GALLERY[name]
    except KeyError:
        raise KeyError(f"unknown gallery recipe {name!r} (have: {sorted(GALLERY)!r})") from None
    return recipe.build(settings or PlotSettings())
