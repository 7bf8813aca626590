"""DBVS (Database Vulnerability Scanner) package"""

__version__ = "1.0.0"
__author__ = "DBVS Development Team"
__description__ = "Version matching and weighted scoring of CVE, CNVD and Aliyun advisories for database products"
