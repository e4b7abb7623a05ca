from setuptools import setup

setup(
    name='robustcp',
    version='0.1.0',
    packages=['robustcp', 'robustcp.uncertainty_sets'],
    license='Apache 2.0',
    zip_safe=False,
    install_requires=["cvxpy >= 1.4.0", "numpy", "scipy"],
    extras_require={"test": ["pytest"]},
    description='A software package to model robust optimization problems and ' +
    'resolve their uncertain constraints by reformulation or cutting planes',
)
