from .distributions import Distribution, ConstantDistribution, parse_distribution
from .sampling import IndexSampler, PersonSampler, PairSampler, TriangularArray, Pair
from .statistics import DataSummary
from .stochastic import bernoulli, gmean, floor_mod, infection_probability
