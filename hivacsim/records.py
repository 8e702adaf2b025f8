import datetime
from typing import List

import numpy as np
import pandas as pd
from recordclass import dataobject

from hivacsim.utils.statistics import DataSummary


class SimData(dataobject):
    """
    Counters of one group at one clock tick of one trial.
    """

    date: datetime.date = None
    size: int = 0
    female: int = 0
    male: int = 0
    homosexual: int = 0
    friends: int = 0
    from_friends: int = 0
    partners: int = 0
    stable: int = 0
    stb_from_list: int = 0
    casual: int = 0
    internal: int = 0
    external: int = 0
    concurrent: int = 0
    std_prevalence: float = 0.0
    std_incidence: int = 0
    std_female: int = 0
    std_male: int = 0
    std_homosexual: int = 0
    std_male2female: int = 0
    std_female2male: int = 0
    std_male2male: int = 0
    std_stable: int = 0
    std_casual: int = 0
    std_internal: int = 0
    std_external: int = 0
    std_recovered: int = 0
    std_protected: int = 0
    deaths: int = 0
    std_deaths: int = 0
    user_data: float = 0.0

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.__fields__}


class SWNInfo(dataobject):
    """
    Small world network properties of one group at the end of one trial.
    """

    edges: float = 0.0
    vertices: int = 0
    connected: bool = True
    degree: float = 0.0
    diameter: float = 0.0
    path_length: float = 0.0
    clustering: float = 0.0
    g_connectivity: float = 0.0
    l_connectivity: float = 0.0
    g_efficiency: float = 0.0
    g_v_efficiency: float = 0.0
    g_s_efficiency: float = 0.0
    l_efficiency: float = 0.0
    cost: float = 0.0
    c_regular: float = 0.0
    l_regular: float = 0.0
    c_random: float = 0.0
    l_random: float = 0.0

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.__fields__}


class SimulationResults:
    """
    Output of a simulation: a trials x (duration + 1) x groups array of
    SimData and a trials x groups array of SWNInfo.
    """

    def __init__(self, trials: int = 0, duration: int = 0, group_names: List[str] = ()):
        self.group_names = list(group_names)
        self.duration = duration
        n_groups = len(self.group_names)
        self.data = np.empty((trials, duration + 1, n_groups), dtype=object)
        for idx in np.ndindex(self.data.shape):
            self.data[idx] = SimData()
        self.network = np.empty((trials, n_groups), dtype=object)

    @property
    def trials(self) -> int:
        return self.data.shape[0]

    @property
    def is_empty(self) -> bool:
        return self.data.size == 0

    def clear(self):
        self.data = np.empty((0, 0, 0), dtype=object)
        self.network = np.empty((0, 0), dtype=object)

    def result(self, trial: int, clock: int, group: int) -> SimData:
        return self.data[trial, clock, group]

    def network_info(self, trial: int, group: int) -> SWNInfo:
        return self.network[trial, group]

    def series(self, field: str, group: int) -> np.ndarray:
        """
        One SimData field as a trials x ticks float array.
        """
        cells = self.data[:, :, group]
        return np.array(
            [[float(getattr(cell, field)) for cell in row] for row in cells]
        ).reshape(cells.shape)

    def summary(self, field: str, group: int, clock: int = -1) -> DataSummary:
        """
        Statistics of a SimData field across trials at one clock tick (the
        last tick by default).
        """
        return DataSummary.from_values(self.series(field, group)[:, clock])

    def network_summary(self, field: str, group: int) -> DataSummary:
        return DataSummary.from_values(
            [
                getattr(info, field)
                for info in self.network[:, group]
                if info is not None
            ]
        )

    def to_dataframe(self, network: bool = False) -> pd.DataFrame:
        """
        Tabulate the results, one row per trial, tick and group (or per trial
        and group for the network properties).
        """
        rows = []
        if network:
            for (trial, group), info in np.ndenumerate(self.network):
                if info is None:
                    continue
                rows.append(
                    {
                        "trial": trial + 1,
                        "group": self.group_names[group],
                        **info.to_dict(),
                    }
                )
        else:
            for (trial, clock, group), cell in np.ndenumerate(self.data):
                rows.append(
                    {
                        "trial": trial + 1,
                        "clock": clock,
                        "group": self.group_names[group],
                        **cell.to_dict(),
                    }
                )
        return pd.DataFrame(rows)
