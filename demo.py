from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np

from gbmschemes import Parameters, Scheme, SchemeComparison

COLORS = {
    Scheme.exact: "black",
    Scheme.milstein: "tab:blue",
    Scheme.euler_maruyama: "tab:orange",
}


def create_scheme_visualizations(comparison: SchemeComparison):
    """Terminal densities, sample paths, pathwise error and log-return fit."""
    params = comparison.params
    fig, axes = plt.subplots(2, 2, figsize=(15, 12))
    fig.suptitle(f"GBM Schemes: {comparison.n_paths:,} paths x {comparison.n_steps} steps",
                 fontsize=16,
                 fontweight="bold")

    # 1. Density histograms at maturity
    ax1 = axes[0, 0]
    for key, result in comparison.results.items():
        scheme = Scheme(key)
        ax1.hist(result.final_prices,
                 bins=50,
                 density=True,
                 histtype="step",
                 linewidth=1.5,
                 color=COLORS[scheme],
                 label=f"{scheme.label}: mean {result.mean:.3f}")
    ax1.axvline(params.analytic_mean(),
                color="red",
                linestyle="--",
                linewidth=2,
                label=f"Analytic mean = {params.analytic_mean():.3f}")
    ax1.set_xlabel("S(T)")
    ax1.set_ylabel("Density")
    ax1.set_title("Terminal price distribution")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    # 2. A handful of exact paths
    ax2 = axes[0, 1]
    sim = comparison.simulations[Scheme.exact.value]
    ax2.plot(sim.times, sim.paths[:, :25], color="gray", alpha=0.6, linewidth=0.8)
    ax2.plot(sim.times, [params.analytic_mean(t) for t in sim.times], color="red", linewidth=2,
             label="E[S(t)]")
    ax2.set_xlabel("t")
    ax2.set_ylabel("S(t)")
    ax2.set_title("Sample exact paths")
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    # 3. Pathwise distance from the exact solution over time
    ax3 = axes[1, 0]
    for scheme in (Scheme.milstein, Scheme.euler_maruyama):
        if scheme.value not in comparison.results:
            continue
        gaps = [comparison.mean_abs_difference(Scheme.exact, scheme, step=k)
                for k in range(comparison.n_steps + 1)]
        ax3.plot(sim.times, gaps, marker="o", color=COLORS[scheme], label=scheme.label)
    ax3.set_xlabel("t")
    ax3.set_ylabel("Mean |S_exact - S_scheme|")
    ax3.set_title("Pathwise error on shared draws")
    ax3.legend()
    ax3.grid(True, alpha=0.3)

    # 4. Exact log returns against their normal law
    ax4 = axes[1, 1]
    rets = np.log(sim.final_row / params.S0)
    drift = (params.mu - 0.5 * params.sigma**2) * params.horizon
    vol = params.sigma * np.sqrt(params.horizon)
    ax4.hist(rets, bins=50, density=True, alpha=0.7, color="skyblue", edgecolor="black")
    grid = np.linspace(rets.min(), rets.max(), 200)
    ax4.plot(grid,
             np.exp(-0.5 * ((grid - drift) / vol) ** 2) / (vol * np.sqrt(2.0 * np.pi)),
             color="red",
             linewidth=2,
             label=f"N({drift:.3f}, {vol:.3f}^2)")
    ax4.set_xlabel("log(S(T)/S0)")
    ax4.set_ylabel("Density")
    ax4.set_title("Exact log returns")
    ax4.legend()
    ax4.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def main():
    params = Parameters(t0=0.0, T=1.0, S0=100.0, sigma=0.2, mu=0.05)
    comparison = SchemeComparison(params, n_paths=10_000, n_steps=10, seed=43)

    print("Running schemes…")
    results = comparison.run_all()
    for result in results.values():
        print(result.result_to_string())
        print()

    print("*" * 50)
    print("BIAS TO ANALYTIC MEAN:")
    for name, value in comparison.compare_results(results, metric="bias").items():
        print(f"  {name}: {value:+.5f}")
    print("*" * 50 + "\n")

    print("Generating visualizations...")
    plt.style.use("default")
    plt.rcParams["figure.dpi"] = 100
    fig = create_scheme_visualizations(comparison)
    plt.show()

    save_plots = input("\nSave plot to file? (y/N): ").lower().strip() == "y"
    if save_plots:
        fig.savefig("gbm_schemes.png", bbox_inches="tight", dpi=300)
        print("Plot saved as gbm_schemes.png")


if __name__ == "__main__":
    main()
