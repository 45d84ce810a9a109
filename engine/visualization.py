from typing import Optional, Sequence

import matplotlib
# Render off-screen; the worker has no window of its own
matplotlib.use('Agg')
import matplotlib.pyplot as plt


def plot_accuracy_history(accuracies: Sequence[float], save_path: Optional[str] = None,
                          title: str = 'Training Accuracy'):
    """Plot per-epoch accuracy (in percent) and optionally save it as an image"""
    fig, ax = plt.subplots(figsize=(10, 5))

    if accuracies:
        epochs = range(1, len(accuracies) + 1)
        ax.plot(epochs, [a * 100.0 for a in accuracies], 'g-', linewidth=2, label='Accuracy (%)')
        ax.set_xlim(0, len(accuracies) + 1)
        ax.legend()
    else:
        ax.text(0.5, 0.5, 'Accuracy data will appear here',
                ha='center', va='center', transform=ax.transAxes)

    ax.set_ylim(0, 105)
    ax.set_title(title)
    ax.set_xlabel('Epoch')
    ax.set_ylabel('Accuracy (%)')
    ax.grid(True, linestyle='--', alpha=0.6)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return fig
