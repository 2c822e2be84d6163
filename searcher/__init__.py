"""
searcher 汇集并行随机搜索的核心算法：
1. 模拟退火（多线程评估候选，单一临界区内接受/降温/记录）
2. 蒙特卡洛采样（温度固定、不降温，可流式写出）

命令行入口：`python -m searcher.cli.main anneal|monte-carlo ...`
"""

from .simulation import (
    Acceptance,
    AnnealingConfig,
    ConfigurationError,
    DataHandler,
    ModelSpace,
    RecordPolicy,
    RunState,
    SearchRecord,
    SimulatedAnnealing,
    metropolis_accept,
    monte_carlo,
    monte_carlo_stream,
    simulated_annealing,
)
from .utils.progress import ProgressMonitor, ProgressTracker

__version__ = "0.1.0"

__all__ = [
    # 退火 / MC
    "AnnealingConfig",
    "ConfigurationError",
    "SimulatedAnnealing",
    "simulated_annealing",
    "monte_carlo",
    "monte_carlo_stream",
    "metropolis_accept",
    # 记录
    "Acceptance",
    "RecordPolicy",
    "RunState",
    "SearchRecord",
    # 能力接口
    "DataHandler",
    "ModelSpace",
    # 进度
    "ProgressMonitor",
    "ProgressTracker",
]
