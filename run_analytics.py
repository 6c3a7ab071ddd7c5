"""Run Monte Carlo analytics over seeded headless games from the command line"""
import argparse
import logging
import os
import sys

import numpy as np
from scipy import stats

# Set matplotlib backend before pyplot is imported
import matplotlib
if '--show-charts' not in sys.argv:
    # Use non-GUI backend for headless operation
    matplotlib.use('Agg')
import matplotlib.pyplot as plt
from scipy.stats import gaussian_kde

from engine import Engine, get_results, run_one_simulation
from entities import money
from sim_config import SimulationSettings

logger = logging.getLogger(__name__)


def calc_stats(values):
    """Distribution summary for one metric (None when there is no data)"""
    if not values:
        return None
    arr = np.array(values, dtype=float)
    return {
        'count': len(values),
        'mean': float(np.mean(arr)),
        'median': float(np.median(arr)),
        'std': float(np.std(arr)),
        'skew': float(stats.skew(arr)) if len(arr) > 2 and np.std(arr) > 0 else 0.0,
        'kurtosis': float(stats.kurtosis(arr)) if len(arr) > 3 and np.std(arr) > 0 else 0.0,
        'min': float(np.min(arr)),
        'max': float(np.max(arr)),
        'p5': float(np.percentile(arr, 5)),
        'p25': float(np.percentile(arr, 25)),
        'p50': float(np.percentile(arr, 50)),
        'p75': float(np.percentile(arr, 75)),
        'p95': float(np.percentile(arr, 95)),
    }


def compute_detailed_stats(results):
    """Compute comprehensive statistics from simulation results"""
    if not results:
        return None

    n = len(results)
    survivors = [r for r in results if r['survived']]
    bankruptcies = [r for r in results if not r['survived']]

    unlocks = {}
    for r in results:
        for achievement_id in r['achievements']:
            unlocks[achievement_id] = unlocks.get(achievement_id, 0) + 1

    return {
        'n': n,
        'survivors': len(survivors),
        'bankruptcies': len(bankruptcies),
        'survival_rate': len(survivors) / n * 100,
        'valuation_stats': calc_stats([r['final_valuation'] for r in results]),
        'survivor_valuation_stats': calc_stats([r['final_valuation'] for r in survivors]),
        'users_stats': calc_stats([r['final_users'] for r in results]),
        'cash_stats': calc_stats([r['final_cash'] for r in results]),
        'cash_trough_stats': calc_stats([r['cash_trough'] for r in results]),
        'products_stats': calc_stats([r['products'] for r in results]),
        'unicorn_pct': sum(1 for r in results if r['final_valuation'] >= 1_000_000_000) / n * 100,
        'achievement_pct': {k: v / n * 100 for k, v in sorted(unlocks.items())},
    }


def compute_bankruptcy_analysis(results):
    """When and how badly the failed runs went under"""
    failed = [r for r in results if not r['survived']]
    if not failed:
        return None

    months = [r['bankrupt_month'] for r in failed if r['bankrupt_month'] is not None]
    by_year = {}
    for m in months:
        year = (m - 1) // 12 + 1
        by_year[year] = by_year.get(year, 0) + 1

    return {
        'count': len(failed),
        'pct_of_runs': len(failed) / len(results) * 100,
        'month_stats': calc_stats(months),
        'by_year': dict(sorted(by_year.items())),
        'avg_products': float(np.mean([r['products'] for r in failed])),
        'avg_peak_valuation': float(np.mean([r['peak_valuation'] for r in failed])),
    }


def extract_sample_runs(results):
    """Best, median and worst runs by final valuation (audit trail)"""
    ranked = sorted(results, key=lambda r: r['final_valuation'], reverse=True)
    mid = len(ranked) // 2
    return {
        'best': ranked[:3],
        'median': ranked[max(0, mid - 1):mid + 2],
        'worst': ranked[-3:],
    }


def _hist(ax, values, bins, color, title, xlabel):
    if values:
        ax.hist(values, bins=bins, color=color, alpha=0.8, density=True, edgecolor='black', linewidth=0.8)
        if len(values) > 5 and np.std(values) > 0:
            kde = gaussian_kde(values)
            x_range = np.linspace(min(values), max(values), 200)
            ax.plot(x_range, kde(x_range), 'k-', linewidth=2, label='KDE')
            ax.legend(fontsize=9)
    else:
        ax.text(0.5, 0.5, 'No data', ha='center', va='center', transform=ax.transAxes)
    ax.set_title(title, fontweight='bold')
    ax.set_xlabel(xlabel)
    ax.grid(True, alpha=0.4, linestyle='--', linewidth=0.5)


def show_simulation_results(results, bins=40, save_path=None):
    """Plot the Monte Carlo distributions

    Args:
        results: List of run_one_simulation() results
        bins: Number of histogram bins
        save_path: If provided, save to this path instead of showing
    """
    summary = compute_detailed_stats(results)
    if not summary:
        print("No results to display")
        return None

    fig = plt.figure(figsize=(16, 10), facecolor='white')
    fig.suptitle(f'Software Market Monte Carlo (n={summary["n"]}, '
                 f'survival {summary["survival_rate"]:.1f}%)', fontsize=16, fontweight='bold')

    # log10 keeps billion-dollar outliers on the same axis as small companies
    valuations = [np.log10(max(r['final_valuation'], 1)) for r in results]
    users = [np.log10(max(r['final_users'], 1)) for r in results]
    troughs = [r['cash_trough'] / 1_000_000 for r in results]
    months = [r['bankrupt_month'] for r in results if r['bankrupt_month'] is not None]

    _hist(plt.subplot(2, 3, 1), valuations, bins, '#1f77b4', 'Final Valuation', 'log10($)')
    _hist(plt.subplot(2, 3, 2), users, bins, '#2ca02c', 'Final Users', 'log10(users)')
    _hist(plt.subplot(2, 3, 3), troughs, bins, '#ff7f0e', 'Cash Trough', '$M')
    _hist(plt.subplot(2, 3, 4), months, bins, '#d62728', 'Bankruptcy Month', 'month')

    ax5 = plt.subplot(2, 3, 5)
    rates = summary['achievement_pct']
    if rates:
        ax5.barh(list(rates.keys()), list(rates.values()), color='#9467bd', edgecolor='black')
    ax5.set_title('Achievement Unlock Rate', fontweight='bold')
    ax5.set_xlabel('% of runs')

    ax6 = plt.subplot(2, 3, 6)
    ax6.scatter([r['products'] for r in results], valuations, alpha=0.5, s=12, color='#17becf')
    ax6.set_title('Products vs Valuation', fontweight='bold')
    ax6.set_xlabel('active products')
    ax6.set_ylabel('log10($)')

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=120, facecolor='white')
        plt.close(fig)
        print(f"Saved chart: {save_path}")
    else:
        plt.show()
    return fig


def print_summary(summary, bankruptcy):
    print(f"\n{'='*80}")
    print("MONTE CARLO RESULTS")
    print(f"{'='*80}")
    print(f"Total Runs: {summary['n']}")
    print(f"Survival Rate: {summary['survival_rate']:.1f}%")
    print(f"Unicorns: {summary['unicorn_pct']:.1f}%")

    v = summary['valuation_stats']
    print(f"\nValuation: P25 {money(v['p25'])} | P50 {money(v['p50'])} | P75 {money(v['p75'])} | "
          f"skew {v['skew']:.2f} | kurtosis {v['kurtosis']:.2f}")
    u = summary['users_stats']
    print(f"Users:     P25 {u['p25']:,.0f} | P50 {u['p50']:,.0f} | P75 {u['p75']:,.0f}")

    if summary['achievement_pct']:
        print("\nAchievements:")
        for achievement_id, pct in summary['achievement_pct'].items():
            print(f"  {achievement_id:25s}: {pct:5.1f}%")

    if bankruptcy:
        print(f"\nBankruptcies: {bankruptcy['count']} ({bankruptcy['pct_of_runs']:.1f}%)")
        if bankruptcy['month_stats']:
            print(f"  Median month: {bankruptcy['month_stats']['median']:.0f}")
        for year, count in bankruptcy['by_year'].items():
            print(f"  Year {year}: {count}")


def print_single_run(seed, months, settings):
    print(f"\n{'='*80}")
    print(f"SINGLE RUN DEBUG DUMP (Seed: {seed})")
    print(f"{'='*80}\n")

    engine = Engine(settings=settings, seed=seed)
    for _ in range(months):
        if engine.company.bankrupt:
            break
        action = engine.ai_decide_action()
        engine.tick_month()
        c = engine.company
        print(f"{engine.current_date.isoformat()}  {action or '-':26s} cash {money(c.cash):>9s}  "
              f"users {c.total_users:>12,}  valuation {money(c.valuation):>9s}")

    results = get_results(engine)
    print(f"\nOUTCOME: {'BANKRUPT' if results['bankrupt'] else 'ALIVE'} after {results['months']} months")
    print(f"Reason: {results['reason']}")
    print(f"Achievements: {', '.join(results['achievements']) or 'none'}")
    print("\nTop competitors:")
    for rival in engine.top_companies(5):
        print(f"  {rival.name:30s} {money(rival.valuation):>9s}  {rival.total_users:>13,} users")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Run Monte Carlo simulation with analytics')
    parser.add_argument('--sims', type=int, default=200, help='Number of simulations (default: 200)')
    parser.add_argument('--months', type=int, default=120, help='Months per simulation (default: 120)')
    parser.add_argument('--competitors', type=int, default=None, help='Competitor count (default: 300)')
    parser.add_argument('--single-run', action='store_true', help='Run one simulation with a monthly dump')
    parser.add_argument('--seed', type=int, default=123, help='Seed for single-run mode (default: 123)')
    parser.add_argument('--env', action='store_true', help='Read TYCOON_* settings from the environment/.env')
    parser.add_argument('--show-charts', action='store_true', help='Show matplotlib charts (requires GUI)')
    parser.add_argument('--save-plots', action='store_true', help='Save plots to PNG files instead of displaying')
    parser.add_argument('--output-dir', type=str, default='output', help='Directory for saved plots (default: output)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    settings = SimulationSettings.from_env() if args.env else SimulationSettings.baseline()
    if args.competitors is not None:
        settings.market.competitor_count = max(0, args.competitors)

    if args.single_run:
        print_single_run(args.seed, args.months, settings)
        return 0

    if args.save_plots:
        os.makedirs(args.output_dir, exist_ok=True)
        print(f"Plots will be saved to: {os.path.abspath(args.output_dir)}")

    print(f"\nRunning {args.sims} simulations of {args.months} months...")
    results = []
    for i in range(args.sims):
        if i % 50 == 0:
            print(f"Progress: {i}/{args.sims}")
        results.append(run_one_simulation(i, months=args.months, settings=settings))

    summary = compute_detailed_stats(results)
    print_summary(summary, compute_bankruptcy_analysis(results))

    if args.show_charts or args.save_plots:
        save_path = os.path.join(args.output_dir, "monte_carlo_results.png") if args.save_plots else None
        show_simulation_results(results, save_path=save_path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
