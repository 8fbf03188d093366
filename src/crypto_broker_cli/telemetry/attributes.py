"""Span attribute keys recorded by CLI commands."""

RPC_METHOD = "rpc.method"
CRYPTO_PROFILE = "crypto.profile"
CRYPTO_INPUT_SIZE = "crypto.input_size"
CRYPTO_HASH_ALGORITHM = "crypto.hash_algorithm"
CRYPTO_HASH_OUTPUT_SIZE = "crypto.hash_output_size"
CRYPTO_SIGNED_CERT_SIZE = "crypto.signed_cert_size"
CRYPTO_BENCHMARK_RESULTS_SIZE = "crypto.benchmark_results_size"
CRYPTO_CSR_SIZE = "crypto.csr_size"
CRYPTO_CA_CERT_SIZE = "crypto.ca_cert_size"
CRYPTO_CA_KEY_SIZE = "crypto.ca_key_size"
