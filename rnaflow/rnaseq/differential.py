"""Differential expression with ballgown, TPM t-tests, DESeq2 and edgeR.

Each method is an R script written from a template into its own results
directory and run with Rscript. ballgown and the TPM t-test only need the
ballgown FPKM tables; DESeq2 and edgeR need the raw gene count matrix and
only run when the count table stage produced one.
"""
import collections
import os
from string import Template

from rnaflow import utils
from rnaflow.log import logger
from rnaflow.pipeline import checks, layout
from rnaflow.pipeline.stage import StageResult, announce, run_command

HEADER = "* Differential Analysis : "

THRESHOLD_DEFAULTS = {"ballgown": {"pval": 0.05, "log2fc": 1},
                      "tpm": {"pval": 0.05, "log2fc": 1},
                      "deseq2": {"pval": 0.1, "log2fc": 1},
                      "edger": {"pval": 0.05, "log2fc": 1}}

_BALLGOWN = Template("""library(ballgown)
pheno_data <- read.csv("$phenodata")
bg <- ballgown(dataDir = "$ballgown_dir", samplePattern = "$sample_pattern", pData = pheno_data)
bg_filt <- subset(bg, "rowVars(texpr(bg)) > 1", genomesubset = TRUE)
results <- stattest(bg_filt, feature = "gene", covariate = "$independent_variable",
                    getFC = TRUE, meas = "FPKM")
results[["log2FC"]] <- log2(results[["fc"]])
write.csv(results, "ballgown_gene_results.csv", row.names = FALSE)
de <- subset(results, !is.na(pval) & pval < $pval & abs(log2FC) >= $log2fc)
write.csv(de, "ballgown_DEG_results.csv", row.names = FALSE)
""")

_TPM = Template("""library(ballgown)
pheno_data <- read.csv("$phenodata")
bg <- ballgown(dataDir = "$ballgown_dir", samplePattern = "$sample_pattern", pData = pheno_data)
fpkm <- gexpr(bg)
tpm <- t(t(fpkm) / colSums(fpkm)) * 1e6
group <- pheno_data[["$independent_variable"]]
case <- tpm[, group == "$case_group", drop = FALSE]
control <- tpm[, group == "$control_group", drop = FALSE]
pval <- apply(tpm, 1, function(x) {
  tryCatch(t.test(x[group == "$case_group"], x[group == "$control_group"])[["p.value"]],
           error = function(e) NA)
})
results <- data.frame(gene_id = rownames(tpm), tpm, pval = pval,
                      log2FC = log2(rowMeans(case) / rowMeans(control)))
write.csv(results, "TPM_gene_results.csv", row.names = FALSE)
de <- subset(results, !is.na(pval) & pval < $pval & abs(log2FC) >= $log2fc)
write.csv(de, "TPM_DEG_results.csv", row.names = FALSE)
""")

_DESEQ2 = Template("""library(DESeq2)
counts <- as.matrix(read.csv("$count_matrix", row.names = "gene_id", check.names = FALSE))
pheno_data <- read.csv("$phenodata", row.names = 1)
pheno_data <- pheno_data[colnames(counts), , drop = FALSE]
condition <- factor(pheno_data[["$independent_variable"]], levels = c("$control_group", "$case_group"))
col_data <- data.frame(condition = condition, row.names = colnames(counts))
dds <- DESeqDataSetFromMatrix(countData = counts, colData = col_data, design = ~ condition)
dds <- DESeq(dds)
results <- as.data.frame(results(dds))
results[["gene_id"]] <- rownames(results)
write.csv(results, "DESeq2_gene_results.csv", row.names = FALSE)
de <- subset(results, !is.na(pvalue) & pvalue < $pval & abs(log2FoldChange) >= $log2fc)
write.csv(de, "DESeq2_DEG_results.csv", row.names = FALSE)
""")

_EDGER = Template("""library(edgeR)
counts <- as.matrix(read.csv("$count_matrix", row.names = "gene_id", check.names = FALSE))
pheno_data <- read.csv("$phenodata", row.names = 1)
pheno_data <- pheno_data[colnames(counts), , drop = FALSE]
group <- factor(pheno_data[["$independent_variable"]], levels = c("$control_group", "$case_group"))
y <- DGEList(counts = counts, group = group)
y <- calcNormFactors(y)
design <- model.matrix(~ group)
y <- estimateDisp(y, design)
fit <- glmQLFit(y, design)
qlf <- glmQLFTest(fit, coef = 2)
results <- as.data.frame(topTags(qlf, n = Inf))
results[["gene_id"]] <- rownames(results)
write.csv(results, "edgeR_gene_results.csv", row.names = FALSE)
de <- subset(results, PValue < $pval & abs(logFC) >= $log2fc)
write.csv(de, "edgeR_DEG_results.csv", row.names = FALSE)
""")

Method = collections.namedtuple("Method", ["name", "out_dir", "needs_counts", "template"])

METHODS = [Method("ballgown", "ballgown_analysis", False, _BALLGOWN),
           Method("tpm", "TPM_analysis", False, _TPM),
           Method("deseq2", "DESeq2_analysis", True, _DESEQ2),
           Method("edger", "edgeR_analysis", True, _EDGER)]

def get_thresholds(config, overrides=None):
    """p-value and log2 fold change cutoffs per method, configuration over defaults.
    """
    out = {}
    for name, defaults in THRESHOLD_DEFAULTS.items():
        cur = dict(defaults)
        cur.update(utils.get_in(config, ("differential", name)) or {})
        cur.update((overrides or {}).get(name, {}))
        out[name] = {"pval": float(cur["pval"]), "log2fc": float(cur["log2fc"])}
    return out

def r_escape(value):
    """Escape a value for use inside a double-quoted R string literal.
    """
    return str(value).replace("\\", "\\\\").replace("\"", "\\\"")

def create_script(context, method, thresholds):
    """Write the R script for one method into its results directory.
    """
    out_dir = utils.safe_makedir(layout.results(context, method.out_dir))
    r_file = os.path.join(out_dir, "%s_analysis.R" % method.name)
    strings = {"phenodata": layout.phenodata_file(context),
               "ballgown_dir": layout.gene_data(context, "ballgown"),
               "count_matrix": layout.gene_count_matrix(context),
               "sample_pattern": context.sample_pattern,
               "independent_variable": context.independent_variable,
               "case_group": context.case_group,
               "control_group": context.control_group}
    script = method.template.substitute(
        {k: r_escape(v) for k, v in strings.items()},
        pval=thresholds["pval"], log2fc=thresholds["log2fc"])
    with open(r_file, "w") as out_handle:
        out_handle.write(script)
    return r_file

def run(context, command_log, thresholds=None):
    """Run every differential method whose input tables are available.

    The count based methods are gated on the gene count matrix existing on
    disk, not on configuration.
    """
    announce("Differential analysis")
    kinds = [checks.BALLGOWN, checks.PHENODATA]
    inventory = checks.check(context, kinds + [checks.COUNT_MATRIX], ["Rscript"])
    checks.require("differential", inventory, kinds, ["Rscript"])
    thresholds = get_thresholds(context.config, thresholds)
    has_counts = inventory.has(checks.COUNT_MATRIX)
    if not has_counts:
        logger.warning("'%s' is missing, skipping DESeq2 and edgeR analyses."
                       % checks.describe(context, checks.COUNT_MATRIX))
    outputs = {}
    with command_log.block(HEADER) as block:
        for method in METHODS:
            if method.needs_counts and not has_counts:
                continue
            r_file = create_script(context, method, thresholds[method.name])
            run_command(block, [inventory.programs["Rscript"], "--vanilla", r_file],
                        "Running %s differential analysis" % method.name,
                        cwd=os.path.dirname(r_file))
            outputs[method.name] = os.path.dirname(r_file)
    return StageResult.success("differential", block.commands, outputs)
