from .dag import DAG, CycleError
from .pdag import PDAG
from .knowledge import Knowledge, KnowledgeError
from . import dag, pdag, knowledge
