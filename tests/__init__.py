"""
Pacote de testes automatizados (pytest).

Contém testes unitários da geometria, da cinemática das partículas,
do agregador de fluxo, do modelo, do driver de frames, da
configuração e do CLI.

Para executar todos os testes:
    pytest tests/ -v
"""
